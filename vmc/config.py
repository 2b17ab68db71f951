import os
from dotenv import load_dotenv

load_dotenv()

# Simulated dispensing time. Override through create_app(), not the environment.
VEND_DURATION_MS = 5000

def getenv(var_name: str, default_value: str = "") -> str:
    default_values = {
        "HOST": "0.0.0.0",
        "PORT": "3002",
        "LOG_LEVEL": "INFO",
        "LOG_FORMAT": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        "ALLOWED_DOMAINS": "*",
        "SERVICE_NAME": "VMC Mock Server",
    }
    if default_value != "":
        default_values[var_name] = default_value
    default_value = default_values[var_name] if var_name in default_values else ""
    return os.getenv(var_name, default_value)
