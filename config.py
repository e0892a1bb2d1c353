# flock_monitor/config.py
"""Configuration management for the Flock Line Monitor"""
import os
import logging

# Configure logging
logging.basicConfig(
    level=os.getenv('MONITOR_LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip() in ['1', 'true', 'True', 'yes', 'YES']


class MonitorConfig:
    """Upload, refresh and display settings"""
    def __init__(self):
        self.refresh_interval_seconds = float(os.getenv('MONITOR_REFRESH_INTERVAL_SECONDS', '30'))
        self.max_upload_bytes = int(os.getenv('MONITOR_MAX_UPLOAD_BYTES', str(10 * 1024 * 1024)))
        self.allowed_extensions = ['xls', 'xlsx']
        # Some systems report .xlsx files as octet-stream
        self.excel_mime_types = [
            'application/vnd.ms-excel',
            'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
            'application/octet-stream'
        ]
        self.display_lines = [
            line.strip() for line in os.getenv('MONITOR_DISPLAY_LINES', '1,2').split(',')
            if line.strip()
        ]
        self.auto_refresh_on_upload = _env_flag('MONITOR_AUTO_REFRESH_ON_UPLOAD', '1')
        self.cors_origins = [
            origin.strip() for origin in os.getenv('MONITOR_CORS_ORIGINS', '').split(',')
            if origin.strip()
        ]


monitor_config = MonitorConfig()
