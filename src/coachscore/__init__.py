"""coachscore: adaptive baseline scoring for training and recovery data."""

__version__ = "0.1.0"
