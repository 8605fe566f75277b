from __future__ import annotations

import os
import platform
import shutil
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class HealthService:
    cfg: Dict[str, Any]

    def get_health_summary(self) -> Dict[str, Any]:
        export_cfg = self.cfg.get("export", {}) or {}
        return {
            "timestamp": time.time(),
            "platform": platform.platform(),
            "python": platform.python_version(),
            "cwd": os.getcwd(),
            "export_dir": export_cfg.get("output_dir"),
            "capture_dir": export_cfg.get("capture_dir"),
            "log_path": self.cfg.get("log_path"),
        }

    @staticmethod
    def disk_usage(path: Optional[str] = None) -> Dict[str, Any]:
        """
        Lightweight disk stats for the export directory.
        """
        target = path or "."
        try:
            usage = shutil.disk_usage(target)
        except OSError:
            return {
                "total_bytes": None,
                "used_bytes": None,
                "free_bytes": None,
                "pct_free": None,
            }
        used = usage.total - usage.free
        pct_free = (usage.free / usage.total * 100) if usage.total else None
        return {
            "total_bytes": usage.total,
            "used_bytes": used,
            "free_bytes": usage.free,
            "pct_free": pct_free,
        }
