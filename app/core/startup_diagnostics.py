"""
Startup Diagnostics Module
-------------------------
Verifies database connectivity during application startup and reports
failures with actionable messages.
"""

from dataclasses import dataclass
from typing import Optional, Dict, List
from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import make_url

from app.core.config_manager import settings
from app.core.database_connection import db_manager


@dataclass
class ServiceStatus:
    """Track service connection status with detailed error information."""

    name: str
    status: str  # "connected", "failed"
    error_message: Optional[str] = None
    suggestion: Optional[str] = None
    connection_details: Optional[Dict[str, str]] = None


def database_connection_details() -> Dict[str, str]:
    """Host, port and database name of the configured URL. Never the password."""
    url = make_url(settings.database_url)
    return {
        "driver": url.drivername,
        "host": url.host or "-",
        "port": str(url.port or "-"),
        "database": url.database or "-",
    }


def display_startup_failure(failed_services: List[ServiceStatus]):
    """Display formatted startup failure message."""
    border = "═" * 80
    print("\n" + border)
    print("[FATAL ERROR] APPLICATION STARTUP FAILED")
    print(border)

    for service in failed_services:
        print(f"\n[FATAL ERROR] {service.name}: {service.status.upper()}")
        print(f"   Error: {service.error_message}")

        if service.connection_details:
            print("   Connection Details:")
            for key, value in service.connection_details.items():
                print(f"     • {key}: {value}")

        if service.suggestion:
            print(f"   >> Suggestion: {service.suggestion}")

    print("\n" + border)
    print("Please fix the issues above and restart the application.")
    print(border + "\n")


def display_service_info():
    """Display service connection information once startup succeeded."""
    border_line = "═" * 80
    header_line = "─" * 80

    print("\n" + border_line)
    print("SERVICE ENDPOINTS & CONNECTION INFORMATION")
    print(border_line)

    local_api_base = f"http://localhost:{settings.fastapi_port}"
    print("FASTAPI SERVICE")
    print(header_line)
    print(f"{'Service':<20} | {'URL':<57}")
    print(f"{header_line}")
    print(f"{'Main API':<20} | {local_api_base + '/':<57}")
    print(f"{'API Documentation':<20} | {local_api_base + '/api/docs':<57}")
    print(f"{'ReDoc Interface':<20} | {local_api_base + '/api/redoc':<57}")
    print(f"{'OpenAPI Schema':<20} | {local_api_base + '/api/openapi.json':<57}")
    print(f"{'Health Check':<20} | {local_api_base + '/health':<57}")
    print(header_line)

    print("\nDATABASE")
    print(header_line)
    print(f"{'Parameter':<20} | {'Value':<57}")
    print(f"{header_line}")
    for key, value in database_connection_details().items():
        print(f"{key.capitalize():<20} | {value:<57}")
    print(header_line)
    print(border_line + "\n")

    logger.info("Service endpoints and connection information displayed")


async def verify_database_connectivity() -> ServiceStatus:
    """Verify database connectivity with detailed error reporting."""
    details = database_connection_details()
    try:
        async with db_manager.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            if result.scalar() != 1:
                return ServiceStatus(
                    name="Database",
                    status="failed",
                    error_message="Connection test query failed",
                    suggestion="Check database permissions and query execution",
                    connection_details=details,
                )
            return ServiceStatus(
                name="Database", status="connected", connection_details=details
            )
    except ConnectionRefusedError:
        return ServiceStatus(
            name="Database",
            status="failed",
            error_message="Connection refused - database is not running or not accessible",
            suggestion=f"Start the database server or check it is listening on {details['host']}:{details['port']}",
            connection_details=details,
        )
    except Exception as e:
        return ServiceStatus(
            name="Database",
            status="failed",
            error_message=str(e),
            suggestion="Check database configuration in .env file and verify credentials",
            connection_details=details,
        )
