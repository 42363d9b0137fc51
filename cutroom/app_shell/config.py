import logging
import os

from cutroom.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    pass


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    Raises ConfigError listing every missing environment variable.
    """
    missing = [env_var for env_var in rules.ops.required_env if not os.environ.get(env_var)]
    if missing:
        raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

    logger.info("Configuration validated (rules %s)", rules.project.rules_version)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
