#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Create the registry's MongoDB indexes: unique plate, licence number, user
email and RUPE reference, plus the owner and status lookups.
"""

import sys
import os
import logging

# Run from a checkout without installing the package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from observability.config import setup_structured_logging
from services.mongodb import get_mongodb_service, close_mongodb_connection

logger = logging.getLogger("create_indexes")


def main() -> int:
    """Create MongoDB indexes. Returns the process exit code."""
    setup_structured_logging(os.getenv('ENVIRONMENT', 'development'))

    try:
        mongodb_service = get_mongodb_service()

        health = mongodb_service.health_check()
        if health['status'] != 'healthy':
            logger.error("MongoDB is not healthy", extra={"health": health})
            return 1

        logger.info("Creating indexes", extra={"database": health['database']})
        mongodb_service.create_indexes()
        return 0

    except Exception as e:
        logger.error("Failed to create indexes", extra={"error_message": str(e)}, exc_info=True)
        return 1
    finally:
        close_mongodb_connection()


if __name__ == "__main__":
    sys.exit(main())
