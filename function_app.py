import logging

import azure.functions as func

from shared.config import get_settings
from shared.init_tables import init_tables

from functions.http.health import bp as health_bp
from functions.http.install import bp as install_bp
from functions.http.push import bp as push_bp

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ==================== TABLE INITIALIZATION ====================

try:
    logger.info("Initializing Azure Table Storage tables...")
    results = init_tables(get_settings().storage_connection_string)

    if results["created"]:
        logger.info(
            f"Created {len(results['created'])} tables: {', '.join(results['created'])}")
    if results["already_exists"]:
        logger.info(f"{len(results['already_exists'])} tables already exist")
    if results["failed"]:
        logger.warning(
            f"Failed to create {len(results['failed'])} tables - some features may not work")

except Exception as e:
    logger.warning(
        f"Table initialization failed: {e} - continuing without table initialization")

# ==================== FUNCTION APP ====================

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

app.register_functions(install_bp)
app.register_functions(push_bp)
app.register_functions(health_bp)
