# Embedding lifecycle across three layers

# +------------------------------+
# |   MultimodalChatSession      |   (Transcript, per session)
# |------------------------------|
# | system / user / assistant    |
# | media attached to user turns |
# | prompt rendering + cue       |
# +------------------------------+
#         |  resolve + admit
#         v
# +------------------------------+
# |   MultimodalContext          |   (Active windows, per context)
# |------------------------------|
# | FIFO window per modality     |
# | bounded by max_*_in_context  |
# +------------------------------+
#         |  get_or_compute
#         v
# +------------------------------+
# |   MultimodalModel            |   (Embedding cache, shared)
# |------------------------------|
# | FIFO cache per modality      |
# | one computation per key      |
# | temp files for inline media  |
# +------------------------------+
#         |
#         v
#   [MediaProcessor / TextEngine]
