"""Export GitHub pull requests with AI utilization labels to CSV."""

__version__ = "0.1.0"
