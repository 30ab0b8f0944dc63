# schedulers/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from typing import Callable


class ResignScheduler:
    """APSchedulerによる月次の無人実行管理"""

    def __init__(
        self,
        job_func: Callable,
        day="last",
        hour: int = 20,
        minute: int = 0,
        timezone: str = None,
    ):
        self._day = day
        self._job_func = job_func
        self._scheduler = BackgroundScheduler(timezone=timezone) if timezone else BackgroundScheduler()
        self._scheduler.add_job(
            self._job_func,
            trigger=CronTrigger(day=day, hour=hour, minute=minute, timezone=timezone),
            id="monthly_resign",
            replace_existing=True,
            max_instances=1,
        )

    def start(self):
        """スケジューラ開始"""
        self._scheduler.start()

    def stop(self):
        """スケジューラ停止"""
        self._scheduler.shutdown(wait=False)
