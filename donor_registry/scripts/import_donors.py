#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Import donors from a CSV file on the command line and print the JSON report.
"""

import argparse
import json
import os
import sys
import logging

from donor_registry.domain.errors import DonorRegistryError
from donor_registry.domain.ingestion import DonorCSVImporter
from donor_registry.services.mongodb import MongoDBService, DonorStore, StoreOperationError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Import donors from a CSV file")
    parser.add_argument("csv_path", help="Path of the donor CSV file")
    parser.add_argument(
        "--collection",
        default=os.getenv('DONOR_COLLECTION', 'donors'),
        help="Target MongoDB collection (default: %(default)s)"
    )
    return parser.parse_args(argv)


def main(argv=None):
    """Run a CSV import against the configured MongoDB."""
    args = parse_args(argv)
    mongodb_service = MongoDBService()
    try:
        store = DonorStore(mongodb_service, args.collection)
        store.ensure_indexes()
        importer = DonorCSVImporter(store)
        report = importer.import_file(args.csv_path)
        print(json.dumps(report.model_dump(mode="json"), indent=2))
    except DonorRegistryError as e:
        logger.error(f"Import failed: {e.message}")
        print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        sys.exit(1)
    except StoreOperationError as e:
        logger.error(f"Could not prepare collection {args.collection}: {e.message}")
        sys.exit(1)
    finally:
        mongodb_service.close_connection()


if __name__ == "__main__":
    main()
