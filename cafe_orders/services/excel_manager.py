"""
Excel Ledger Manager with Concurrency Control

Appends completed orders to the ledger workbook (orderhistory.xlsx by
default) inside DATA_DIRECTORY. Several Celery workers may export at
the same time, so every read-modify-write holds a FileLock.

Author: Khalil Bannouri
Version: 1.0.0
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from filelock import FileLock, Timeout

from cafe_orders.core.config import get_settings

logger = logging.getLogger(__name__)


class ExcelManager:
    """Thread-safe Excel ledger of completed orders."""

    LEDGER_COLUMNS = [
        "order_id",
        "placed_at",
        "completed_at",
        "customer_name",
        "phone",
        "table_no",
        "items",
        "item_count",
        "total",
        "exported_at",
    ]

    @classmethod
    def _paths(cls) -> tuple[Path, Path]:
        """Ledger file and its lock file for the current settings."""
        settings = get_settings()
        data_dir = Path(settings.data_directory)
        ledger = data_dir / settings.excel_filename
        return ledger, data_dir / f"{settings.excel_filename}.lock"

    @classmethod
    def _ensure_data_dir(cls) -> None:
        """Create data directory if needed."""
        data_dir = Path(get_settings().data_directory)
        if not data_dir.exists():
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created data directory: {data_dir}")

    @classmethod
    def _load_or_create_df(cls, file_path: Path) -> pd.DataFrame:
        """Load existing ledger or create new DataFrame."""
        if file_path.exists():
            try:
                return pd.read_excel(file_path, engine="openpyxl")
            except Exception as e:
                logger.warning(f"Error reading {file_path}: {e}")
                return pd.DataFrame(columns=cls.LEDGER_COLUMNS)
        return pd.DataFrame(columns=cls.LEDGER_COLUMNS)

    @staticmethod
    def _describe_items(items: list[dict[str, Any]]) -> str:
        return ", ".join(f"{i.get('name')} x{i.get('quantity')}" for i in items)

    @classmethod
    def export_completed_order(cls, order_data: dict[str, Any]) -> dict[str, Any]:
        """
        Append one completed order to the ledger with file locking.

        Args:
            order_data: Order record with wire keys (tableNo, completedAt)

        Returns:
            dict: success flag, message and export time
        """
        cls._ensure_data_dir()
        ledger_file, lock_file = cls._paths()
        lock_timeout = get_settings().file_lock_timeout

        order_id = order_data.get("id", "unknown")
        result = {
            "success": False,
            "message": "",
            "order_id": order_id,
            "exported_at": None,
        }

        try:
            lock = FileLock(str(lock_file), timeout=lock_timeout)

            with lock:
                logger.debug(f"Lock acquired for Order #{order_id}")

                df = cls._load_or_create_df(ledger_file)

                if "order_id" in df.columns and (df["order_id"].astype(str) == str(order_id)).any():
                    result["success"] = True
                    result["message"] = f"Order #{order_id} already in ledger"
                    return result

                items = order_data.get("items") or []
                export_time = datetime.now().isoformat()
                new_row = {
                    "order_id": order_id,
                    "placed_at": order_data.get("timestamp"),
                    "completed_at": order_data.get("completedAt"),
                    "customer_name": order_data.get("name"),
                    "phone": order_data.get("phone"),
                    "table_no": order_data.get("tableNo"),
                    "items": cls._describe_items(items),
                    "item_count": sum(int(i.get("quantity", 0)) for i in items),
                    "total": order_data.get("total"),
                    "exported_at": export_time,
                }

                df = pd.concat([df, pd.DataFrame([new_row])], ignore_index=True)
                df.to_excel(str(ledger_file), index=False, engine="openpyxl")

                logger.info(f"Order #{order_id} exported to ledger")

                result["success"] = True
                result["message"] = f"Order #{order_id} exported"
                result["exported_at"] = export_time

            logger.debug(f"Lock released for Order #{order_id}")

        except Timeout:
            result["message"] = f"Lock timeout ({lock_timeout}s)"
            logger.error(f"Lock timeout for Order #{order_id}")

        except Exception as e:
            result["message"] = str(e)
            logger.exception(f"Error exporting Order #{order_id}")

        return result

    @classmethod
    def get_all_rows(cls) -> list[dict[str, Any]]:
        """Get all ledger rows."""
        ledger_file, _ = cls._paths()

        if not ledger_file.exists():
            return []

        try:
            df = pd.read_excel(ledger_file, engine="openpyxl", dtype={"order_id": str, "phone": str})
            return df.to_dict("records")
        except Exception as e:
            logger.error(f"Error reading ledger: {e}")
            return []

    @classmethod
    def clear_all(cls) -> bool:
        """Delete the ledger and its lock file."""
        try:
            for f in cls._paths():
                if f.exists():
                    f.unlink()
            logger.info("Ledger cleared")
            return True
        except OSError as e:
            logger.error(f"Error clearing ledger: {e}")
            return False
