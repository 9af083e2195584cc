"""Match job postings to a candidate profile and gate apply/learn work on recorded decisions."""

__version__ = "0.1.0"
