# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Transaction Logger

Single responsibility: Log and retrieve transactions (append-only JSONL)
"""

import json
import logging
import uuid
from pathlib import Path
from typing import List, Dict, Any, Optional
from datetime import datetime, UTC

from binstash.models.registry_models import (
    TransactionRecord,
    TransactionOperation,
    TransactionStatus
)

logger = logging.getLogger(__name__)


class TransactionLogger:
    """Manages transaction logging to append-only JSONL file"""

    def __init__(self, log_file: Path):
        """
        Initialize transaction logger.

        Args:
            log_file: Path to transactions.jsonl
        """
        self.log_file = log_file

    def create_transaction(
        self,
        operation: TransactionOperation,
        package: str,
        version: Optional[str] = None
    ) -> TransactionRecord:
        """
        Create a new transaction record.

        Args:
            operation: Type of operation
            package: Qualified package name
            version: Package version

        Returns:
            New transaction record
        """
        return TransactionRecord(
            id=f"txn-{uuid.uuid4().hex[:12]}",
            operation=operation,
            package=package,
            version=version or None,
            status=TransactionStatus.PENDING,
            started_at=datetime.now(UTC)
        )

    def finish(
        self,
        transaction: TransactionRecord,
        status: TransactionStatus,
        error: Optional[str] = None
    ):
        """Set the final status and append the record"""
        transaction.status = status
        transaction.error = error
        transaction.completed_at = datetime.now(UTC)
        self.log(transaction)

    def log(self, transaction: TransactionRecord):
        """
        Append transaction to JSONL log file.

        A failing write is logged and ignored; history is best-effort.

        Args:
            transaction: Transaction record to log
        """
        log_line = json.dumps(transaction.to_dict())
        try:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.log_file, "a") as f:
                f.write(log_line + "\n")
        except OSError as e:
            logger.warning(f"Failed to write transaction log: {e}")

    def list_transactions(self, limit: int = 50) -> List[Dict[str, Any]]:
        """
        List recent transactions from log.

        Args:
            limit: Maximum number of transactions to return

        Returns:
            List of transaction records (most recent first)
        """
        if not self.log_file.exists():
            return []

        transactions = []
        with open(self.log_file, "r") as f:
            for line in f:
                if not line.strip():
                    continue
                try:
                    transactions.append(json.loads(line))
                except json.JSONDecodeError as e:
                    logger.error(f"Failed to parse transaction log line: {e}")

        # Return most recent first
        return list(reversed(transactions[-limit:]))
