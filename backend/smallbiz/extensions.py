# Overview: Flask extension instances for database, migrations and the job queue.

from celery import Celery, Task
from celery.schedules import crontab
from flask import Flask, has_app_context
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


def celery_init_app(app: Flask) -> Celery:
    """
    Bind a Celery instance to the Flask app.

    Every task body runs inside the app context so services can use db.session
    and current_app.config exactly like request handlers do.
    """
    class FlaskTask(Task):
        def __call__(self, *args, **kwargs):
            if has_app_context():
                return self.run(*args, **kwargs)
            with app.app_context():
                return self.run(*args, **kwargs)

    celery_app = Celery(app.name, task_cls=FlaskTask)
    celery_app.config_from_object(app.config["CELERY"])
    celery_app.conf.beat_schedule = {
        "generate-daily-sales-summaries": {
            "task": "smallbiz.tasks.dispatch_daily_sales_summaries",
            "schedule": crontab(
                hour=app.config["DAILY_SUMMARY_HOUR"],
                minute=app.config["DAILY_SUMMARY_MINUTE"],
            ),
        },
    }
    celery_app.set_default()
    app.extensions["celery"] = celery_app
    return celery_app
