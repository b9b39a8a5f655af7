"""
Table initialization for the Scan Bridge
Creates the Azure Table Storage tables the app needs, for both local
(Azurite) and production storage accounts.
"""

import logging

from azure.core.exceptions import ResourceExistsError
from azure.data.tables import TableServiceClient

from shared.exceptions import ConfigurationError

REQUIRED_TABLES = [
    "CSRFTokens",    # Install CSRF tokens
                     # PartitionKey: "csrf", RowKey: {token}

    "Credentials",   # Per-principal credential records
                     # PartitionKey: {team_id}, RowKey: {team_id}.{user_id}
]

logger = logging.getLogger(__name__)


def init_tables(connection_string: str | None) -> dict:
    """
    Initialize all required Azure Table Storage tables

    Args:
        connection_string: Azure Storage connection string

    Returns:
        dict: Summary of table creation results
    """
    if not connection_string:
        raise ConfigurationError(
            "AzureWebJobsStorage environment variable not set",
            setting="storage_connection_string"
        )

    logger.info(f"Initializing tables on {_mask_connection_string(connection_string)}")

    service_client = TableServiceClient.from_connection_string(connection_string)

    results = {
        "created": [],
        "already_exists": [],
        "failed": []
    }

    for table_name in REQUIRED_TABLES:
        try:
            service_client.create_table(table_name)
            logger.info(f"Created table '{table_name}'")
            results["created"].append(table_name)

        except ResourceExistsError:
            logger.info(f"Table '{table_name}' already exists")
            results["already_exists"].append(table_name)

        except Exception as e:
            logger.error(f"Failed to create table '{table_name}': {str(e)}")
            results["failed"].append({"table": table_name, "error": str(e)})

    return results


def _mask_connection_string(conn_str: str) -> str:
    """Mask sensitive parts of connection string for logging"""
    if "UseDevelopmentStorage=true" in conn_str:
        return "UseDevelopmentStorage=true (Azurite)"

    if "AccountKey=" in conn_str:
        key_part = conn_str.split("AccountKey=", 1)[1].split(";")[0]
        masked_key = key_part[:8] + "..." + key_part[-4:] if len(key_part) > 12 else "***"
        return conn_str.replace(key_part, masked_key)

    return conn_str
