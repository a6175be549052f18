"""Named-disk storage facade over local and S3 backends."""

__version__ = "0.1.0"
