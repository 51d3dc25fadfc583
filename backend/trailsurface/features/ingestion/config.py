"""
Ingestion pipeline configuration constants.

Contains progress checkpoints and step messages.
"""


class IngestionConfig:
    """Progress checkpoints of the background ingestion task (percent)."""

    # ==========================================================================
    # Progress Checkpoints
    # ==========================================================================
    # Classification is the only long step, its progress is spread
    # between CLASSIFY_START and CLASSIFY_END chunk by chunk.
    PROGRESS_PARSING = 10
    PROGRESS_CLASSIFY_START = 50
    PROGRESS_CLASSIFY_END = 70
    PROGRESS_SEGMENTING = 70
    PROGRESS_FINALIZING = 90

    MESSAGE_STARTING = "Starting GPX processing"
    MESSAGE_PARSING = "Parsing GPX file"
    MESSAGE_CLASSIFYING = "Determining surface types"
    MESSAGE_SEGMENTING = "Segmenting unpaved sections"
    MESSAGE_FINALIZING = "Finalizing route data"
    MESSAGE_SHUTDOWN = "Processing interrupted by shutdown"

    # ==========================================================================
    # Defaults (overridden from Settings by the factory)
    # ==========================================================================
    MAX_CONCURRENT_JOBS = 4
    CLASSIFY_BATCH_SIZE = 100
