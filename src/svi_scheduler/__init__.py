"""svi_scheduler — sample tracking and analysis-meeting scheduler for the SVI sequencing program.

Builds a sample database from sequencing directories, the accessioning
workbook and report listings, then ranks every unreported proband by
priority tier and assigns each one a slot on the Tuesday/Friday analysis
meeting calendar, skipping holidays and cancelled meetings.

Typical usage::

    from svi_scheduler.config import SchedulerConfig
    from svi_scheduler.database import database_to_samples, load_database
    from svi_scheduler.meeting_calendar import build_exclusions
    from svi_scheduler.samples import load_cancellations, load_hot_list
    from svi_scheduler.schedule import build_schedule, write_schedule

    cfg        = SchedulerConfig.from_yaml("/etc/svi/config.yaml")
    samples    = database_to_samples(load_database(cfg.database_file))
    exclusions = build_exclusions(load_cancellations(cfg.cancellations_file), cfg, today)
    schedule   = build_schedule(samples, load_hot_list(cfg.hotlist_file), exclusions, cfg, today=today)
    write_schedule(schedule, cfg.schedule_file)
"""

__version__ = "0.1.0"
