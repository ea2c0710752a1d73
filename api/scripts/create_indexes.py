#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Prepare MongoDB for the confirmation workflow: complaint indexes, the unique
evidence key index and change stream pre-images.
"""

import sys
import os
import argparse
import logging

# Add the parent directory to the path so we can import from api
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.mongodb import get_mongodb_service, close_mongodb_connection

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        '--evidence-bucket',
        default=os.getenv('EVIDENCE_BUCKET', 'evidence'),
        help="GridFS bucket holding evidence images"
    )
    parser.add_argument(
        '--skip-pre-images',
        action='store_true',
        help="Do not enable change stream pre-images (needed to route delete events)"
    )
    args = parser.parse_args(argv)

    try:
        mongodb_service = get_mongodb_service()

        health = mongodb_service.health_check()
        if health['status'] != 'healthy':
            logger.error(f"MongoDB is not healthy: {health}")
            sys.exit(1)

        logger.info(f"Connected to MongoDB {health['version']} - Database: {health['database']}")

        mongodb_service.create_indexes(evidence_bucket=args.evidence_bucket)
        if not args.skip_pre_images:
            mongodb_service.enable_pre_images()

        logger.info("MongoDB prepared successfully")

    except Exception as e:
        logger.error(f"Failed to prepare MongoDB: {e}")
        sys.exit(1)
    finally:
        close_mongodb_connection()


if __name__ == "__main__":
    main()
