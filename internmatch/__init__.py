"""internmatch: quota-aware internship allocation engine."""

__version__ = "0.3.0"
