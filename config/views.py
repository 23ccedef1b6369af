# config/views.py
import logging

from django.db import DatabaseError, connection
from django.http import HttpResponse, JsonResponse

logger = logging.getLogger(__name__)


def health_view(request):
    """Liveness plus a trivial database round trip"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as exc:
        logger.error("Health check database error: %s", exc)
        return JsonResponse({"status": "error", "database": "unavailable"}, status=503)
    return JsonResponse({"status": "ok", "database": "ok"})


def welcome_view(request):
    html = """
    <html>
        <head><title>Designation API</title></head>
        <body style="font-family: sans-serif; display: flex; flex-direction: column; align-items: center; justify-content: center; height: 100vh; background-color: #f0f2f5;">
            <div style="background: white; padding: 2rem; border-radius: 8px; box-shadow: 0 4px 6px rgba(0,0,0,0.1); text-align: center;">
                <h1 style="color: #1a73e8;">Designation API</h1>
                <p>Organisational ladder service is running.</p>
                <div style="margin-top: 1.5rem;">
                    <a href="/admin/" style="text-decoration: none; background: #1a73e8; color: white; padding: 0.5rem 1rem; border-radius: 4px; margin-right: 0.5rem;">Admin</a>
                    <a href="/swagger/" style="text-decoration: none; background: #34a853; color: white; padding: 0.5rem 1rem; border-radius: 4px;">API Docs</a>
                </div>
            </div>
        </body>
    </html>
    """
    return HttpResponse(html)
