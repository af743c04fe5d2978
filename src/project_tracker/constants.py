HOME_ENV_VAR = "PROJECT_TRACKER_HOME"
DEFAULT_HOME_DIR_NAME = ".project_tracker"
CONFIG_FILE = "config.yaml"
DEFAULT_DATA_FILE = "tracker-data.yaml"
DEFAULT_LOG_LEVEL = "INFO"
VALID_LOG_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
