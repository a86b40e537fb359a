"""captionbridge: voice-activity-gated live captions, translation and broadcast."""

__version__ = "0.1.0"
