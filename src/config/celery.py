"""
Celery da loja.

Só as notificações (e-mail e WhatsApp) rodam no worker; elas ficam na fila
``notifications`` para não disputar espaço com tarefas futuras.  As settings
com prefixo CELERY_ são lidas do Django.
"""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("storefront")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.conf.task_routes = {"notifications.*": {"queue": "notifications"}}
app.autodiscover_tasks()
