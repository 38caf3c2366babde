#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Script to create the donor collection indexes, including the unique email index.
"""

import os
import sys
import logging

from donor_registry.services.mongodb import MongoDBService, DonorStore, StoreOperationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main():
    """Create MongoDB indexes."""
    mongodb_service = MongoDBService()
    try:
        logger.info("Starting MongoDB index creation...")

        # Test connection
        health = mongodb_service.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB is not healthy: {health}")
            sys.exit(1)

        logger.info(f"Connected to MongoDB {health['version']} - Database: {health['database']}")

        store = DonorStore(mongodb_service, os.getenv('DONOR_COLLECTION', 'donors'))
        store.ensure_indexes()

        logger.info("MongoDB indexes created successfully!")

    except StoreOperationError as e:
        logger.error(f"Failed to create indexes: {e.message}")
        sys.exit(1)
    finally:
        mongodb_service.close_connection()


if __name__ == "__main__":
    main()
