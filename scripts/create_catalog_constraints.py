#!/usr/bin/env python3
"""Create the unique constraints the catalog relies on.

Usage:
    python scripts/create_catalog_constraints.py
    python scripts/create_catalog_constraints.py --show-only  # Show existing constraints only
"""

import argparse
import logging
import os
import sys

from neo4j import GraphDatabase

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from config import env  # noqa: F401,E402
from infrastructure.database.neo4j_repository import schema_statements  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


def show_existing_constraints(driver) -> list[dict]:
    """Log all existing constraints and return them as a list."""
    with driver.session() as session:
        result = session.run("SHOW CONSTRAINTS")
        constraints = []
        logger.info("=" * 60)
        logger.info("EXISTING CONSTRAINTS")
        logger.info("=" * 60)
        for record in result:
            info = {
                "name": record["name"],
                "type": record["type"],
                "labels_or_types": record["labelsOrTypes"],
                "properties": record["properties"],
            }
            constraints.append(info)
            logger.info(f"  [{info['type']:18}] {info['name']:35} | {info['labels_or_types']} -> {info['properties']}")
        logger.info("=" * 60)
        return constraints


def create_constraints(session) -> int:
    created_count = 0
    for statement in schema_statements():
        summary = session.run(statement).consume()
        added = summary.counters.constraints_added
        name = statement.split()[2]
        if added:
            logger.info(f"  [CREATE] {name}")
        else:
            logger.info(f"  [SKIP] {name} already exists")
        created_count += added
    return created_count


def main():
    parser = argparse.ArgumentParser(description="Create catalog constraints in Neo4j")
    parser.add_argument("--show-only", action="store_true", help="Only show existing constraints")
    parser.add_argument("--uri", default=os.getenv("NEO4J_URI", "bolt://localhost:7687"))
    parser.add_argument("--user", default=os.getenv("NEO4J_USER", "neo4j"))
    parser.add_argument("--password", default=os.getenv("NEO4J_PASSWORD"))
    args = parser.parse_args()

    if not args.password:
        logger.error("Neo4j password not provided. Set NEO4J_PASSWORD environment variable.")
        sys.exit(1)

    logger.info(f"Connecting to Neo4j at {args.uri}")
    driver = GraphDatabase.driver(args.uri, auth=(args.user, args.password))

    try:
        driver.verify_connectivity()
        show_existing_constraints(driver)
        if args.show_only:
            logger.info("Show-only mode. Exiting without creating constraints.")
            return

        with driver.session() as session:
            total_created = create_constraints(session)
        logger.info(f"Created {total_created} new constraint(s)")
        show_existing_constraints(driver)
    except Exception as e:
        logger.error(f"Error: {e}")
        sys.exit(1)
    finally:
        driver.close()


if __name__ == "__main__":
    main()
