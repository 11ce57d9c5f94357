"""Face attribute (age, gender, race) training and inference pipeline."""

__version__ = "0.0.1"
