"""
HTML status page
"""

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
from datetime import datetime
from html import escape
import socket

from ..core.config import Settings
from ..core.dependencies import get_database, get_settings
from ..db.session import Database

router = APIRouter()

PAGE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

STATUS_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>{title}</title>
    <style>
        body {{ font-family: Arial, sans-serif; margin: 40px; }}
        .info {{ background: #f5f5f5; padding: 20px; border-radius: 5px; }}
        .links a {{ display: inline-block; margin: 10px; padding: 10px 20px; background: #007bff; color: white; text-decoration: none; border-radius: 5px; }}
        form input, form button {{ padding: 8px; margin: 5px; }}
        form button {{ background: #28a745; color: white; border: none; border-radius: 3px; }}
    </style>
</head>
<body>
    <h1>{title}</h1>
    <div class="info">
        <h3>Container Information:</h3>
        <p><strong>Hostname:</strong> {hostname}</p>
        <p><strong>Time:</strong> {now}</p>
        <p><strong>Database:</strong> {db_status}</p>
    </div>
    <div class="links">
        <a href="/health">Health Check</a>
        <a href="/users">List Users</a>
    </div>
    <div style="margin-top: 20px;">
        <h3>Test Database Connection:</h3>
        <form action="/users/create" method="POST">
            <input type="text" name="name" placeholder="Name" required>
            <input type="email" name="email" placeholder="Email" required>
            <button type="submit">Create User</button>
        </form>
    </div>
</body>
</html>
"""


def _db_status(database: Database) -> str:
    if not database.connected:
        return "Not connected"
    if database.route:
        return f"Connected ({database.route})"
    return "Connected"


# Mounted last: any path no other route claims renders the status page.
@router.api_route("/", methods=PAGE_METHODS, response_class=HTMLResponse)
@router.api_route("/{path:path}", methods=PAGE_METHODS, response_class=HTMLResponse, include_in_schema=False)
async def status_page(
    database: Database = Depends(get_database),
    settings: Settings = Depends(get_settings)
):
    """Identify the instance that served the request"""
    return STATUS_PAGE.format(
        title=escape(settings.APP_NAME),
        hostname=escape(socket.gethostname()),
        now=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
        db_status=_db_status(database)
    )
