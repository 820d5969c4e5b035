# backend/make_celery.py
# Worker:  celery -A make_celery worker --loglevel INFO
# Beat:    celery -A make_celery beat --loglevel INFO
from smallbiz import create_app

flask_app = create_app()
celery_app = flask_app.extensions["celery"]
