from unittest.mock import MagicMock, patch

import pytest

from auralog.scheduler.jobs import run_daily_reminders
from auralog.scheduler.runner import DAILY_REMINDERS_JOB_ID, create_scheduler


class TestCreateScheduler:
    @patch("auralog.scheduler.runner.get_settings")
    def test_registers_reminder_job_on_grid(self, mock_settings):
        mock_settings.return_value = MagicMock(scheduler_interval_minutes=15)

        scheduler = create_scheduler()
        job = scheduler.get_job(DAILY_REMINDERS_JOB_ID)

        assert job is not None
        assert job.func is run_daily_reminders
        assert job.max_instances == 1
        minute_field = next(f for f in job.trigger.fields if f.name == "minute")
        assert str(minute_field) == "*/15"

    @pytest.mark.parametrize("interval", [0, 7, 45])
    @patch("auralog.scheduler.runner.get_settings")
    def test_rejects_interval_not_dividing_an_hour(self, mock_settings, interval):
        mock_settings.return_value = MagicMock(scheduler_interval_minutes=interval)

        with pytest.raises(ValueError):
            create_scheduler()
