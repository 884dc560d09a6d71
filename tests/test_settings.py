from multimodal.infrastructure.config.settings import MultimodalSettings


def test_defaults():
    settings = MultimodalSettings()

    assert settings.enable_vision and settings.enable_audio
    assert settings.max_image_cache == 100
    assert settings.max_audio_cache == 50
    assert settings.max_images_in_context == 4
    assert settings.max_audio_in_context == 2
    assert settings.temp_dir is None


def test_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("MULTIMODAL_ENABLE_AUDIO", "false")
    monkeypatch.setenv("MULTIMODAL_MAX_IMAGE_CACHE", "8")
    monkeypatch.setenv("MULTIMODAL_TEMP_DIR", str(tmp_path))
    monkeypatch.setenv("MULTIMODAL_LOG_FORMAT", "console")

    settings = MultimodalSettings.from_env()

    assert settings.enable_audio is False
    assert settings.enable_vision is True
    assert settings.max_image_cache == 8
    assert settings.temp_dir == str(tmp_path)
    assert settings.log_format == "console"


def test_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("MULTIMODAL_MAX_AUDIO_IN_CONTEXT", "5")
    monkeypatch.setenv("MULTIMODAL_ENABLE_VISION", "0")

    settings = MultimodalSettings.from_env(max_audio_in_context=1, enable_vision=True)

    assert settings.max_audio_in_context == 1
    assert settings.enable_vision is True


def test_empty_env_values_are_ignored(monkeypatch):
    monkeypatch.setenv("MULTIMODAL_MAX_AUDIO_CACHE", "")

    assert MultimodalSettings.from_env().max_audio_cache == 50
