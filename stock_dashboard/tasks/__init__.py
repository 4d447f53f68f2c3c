from stock_dashboard.tasks.scheduler import SchedulerManager

__all__ = ["SchedulerManager"]
