# gunicorn.conf.py
import os

PORT = os.environ.get("PORT")
if not PORT:
    PORT = "8000"  # local

bind = f"0.0.0.0:{PORT}"

# Los recordatorios de vencimiento viven en memoria del proceso:
# con varios workers cada uno mantiene sus propios timers.
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))
threads = int(os.environ.get("GUNICORN_THREADS", "4"))
worker_class = os.environ.get("GUNICORN_WORKER_CLASS", "gthread")

timeout = int(os.environ.get("GUNICORN_TIMEOUT", "120"))
graceful_timeout = 30
keepalive = 2

accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("GUNICORN_LOG_LEVEL", "info")

preload_app = False


def worker_exit(server, worker):
    # Timers pendientes se pierden con el worker; se cancelan explicitamente
    from tasks.reminders import due_reminders

    pending = due_reminders.pending()
    due_reminders.cancel_all()
    if pending:
        server.log.info("Dropped %s pending due reminders on worker exit", len(pending))
