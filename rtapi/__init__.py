"""Real-time API latency analyzer."""

__version__ = "0.2.0"
