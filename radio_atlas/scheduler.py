"""
APScheduler wrapper for Radio Atlas

Background cache maintenance:
- Periodic refresh of recently visited countries (default: every 30 minutes)
- One-shot launch job: quick refresh, then the initial population pass
- One-shot manual refresh queued from the API

Key Principle: jobs never raise into the scheduler. Every failure is logged
and the cache keeps its previous Snapshots.
"""

import logging
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

logger = logging.getLogger(__name__)


class RefreshScheduler:
    """Wrapper for APScheduler to run cache refresh jobs

    Attributes:
        scheduler: BackgroundScheduler instance
        refresh_interval: Minutes between periodic refreshes
    """

    REFRESH_JOB_ID = 'refresh_recent_job'
    LAUNCH_JOB_ID = 'launch_refresh_job'
    MANUAL_JOB_ID = 'manual_refresh_job'

    def __init__(self, refresh_func, refresh_interval_minutes=30, scheduler=None):
        """Initialize the scheduler with the periodic refresh job (paused)

        Args:
            refresh_func: Function to call for each refresh (no args)
            refresh_interval_minutes: Minutes between refreshes
            scheduler: Optional pre-built scheduler (tests)
        """
        self.scheduler = scheduler or BackgroundScheduler()
        self.refresh_interval = refresh_interval_minutes
        self.refresh_func = refresh_func

        self.scheduler.add_job(
            self._run_job,
            'interval',
            args=['Periodic refresh', self.refresh_func],
            minutes=self.refresh_interval,
            id=self.REFRESH_JOB_ID,
            name='Recent Countries Refresh Job',
            max_instances=1,
            coalesce=True,
            next_run_time=None,
        )

        self.scheduler.start()
        logger.info(f"Scheduler initialized (interval: {refresh_interval_minutes} minutes)")

    def _run_job(self, name, func):
        try:
            logger.info(f"Starting {name.lower()}")
            func()
            logger.info(f"{name} finished")
        except Exception as e:
            logger.error(f"Error during {name.lower()}: {e}", exc_info=True)

    def run_at_launch(self, launch_func):
        """Schedule a one-shot job to run immediately

        Returns:
            True if scheduled, False if a launch job is already pending
        """
        return self._run_once(self.LAUNCH_JOB_ID, 'Launch refresh', launch_func)

    def run_refresh_now(self):
        """Queue one refresh of recent countries outside the interval

        Returns:
            True if queued, False if a manual refresh is already pending
        """
        return self._run_once(self.MANUAL_JOB_ID, 'Manual refresh', self.refresh_func)

    def _run_once(self, job_id, name, func):
        if self.scheduler.get_job(job_id):
            logger.info(f"{name} job already scheduled")
            return False

        self.scheduler.add_job(
            self._run_job,
            'date',
            args=[name, func],
            run_date=datetime.now(),
            id=job_id,
            name=f'{name} Job',
        )
        logger.info(f"{name} scheduled")
        return True

    def start(self):
        """Resume the periodic refresh job

        Returns:
            True if started, False if already running
        """
        try:
            if self.is_running():
                logger.info("Refresh job already running")
                return False

            self.scheduler.resume_job(self.REFRESH_JOB_ID)
            logger.info("Refresh job started")
            return True

        except Exception as e:
            logger.error(f"Error starting refresh job: {e}")
            return False

    def stop(self):
        """Pause the periodic refresh job

        Returns:
            True if stopped, False if not found
        """
        try:
            if not self.scheduler.get_job(self.REFRESH_JOB_ID):
                logger.warning("Refresh job not found")
                return False

            self.scheduler.pause_job(self.REFRESH_JOB_ID)
            logger.info("Refresh job stopped")
            return True

        except Exception as e:
            logger.error(f"Error stopping refresh job: {e}")
            return False

    def is_running(self):
        try:
            job = self.scheduler.get_job(self.REFRESH_JOB_ID)
            return bool(job and job.next_run_time is not None)
        except Exception as e:
            logger.error(f"Error checking job status: {e}")
            return False

    def modify_interval(self, minutes):
        """Change the periodic refresh interval

        Returns:
            True if changed
        """
        try:
            self.scheduler.reschedule_job(
                self.REFRESH_JOB_ID,
                trigger=IntervalTrigger(minutes=minutes)
            )
            self.refresh_interval = minutes
            logger.info(f"Refresh interval changed to {minutes} minutes")
            return True

        except Exception as e:
            logger.error(f"Error modifying refresh interval: {e}")
            return False

    def shutdown(self, wait=True):
        try:
            logger.info("Shutting down scheduler...")
            self.scheduler.shutdown(wait=wait)
            logger.info("Scheduler shut down")
        except Exception as e:
            logger.error(f"Error shutting down scheduler: {e}")
