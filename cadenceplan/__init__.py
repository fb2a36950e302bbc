"""cadenceplan - workload analysis and rebalancing for content creator schedules."""

__version__ = "0.1.0"
