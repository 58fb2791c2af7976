import logging
import datetime as dt
from pathlib import Path

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(
    name: str,
    log_dir: str | Path = "data/logs/insider_trading",
    level: int = logging.INFO,
    log_format: str = DEFAULT_FORMAT,
    daily_rotation: bool = True,
    console_output: bool = False
) -> logging.Logger:
    """
    Setup a logger writing to a file under log_dir, optionally echoing to console.

    :param name: Logger name (e.g., 'insider_trading.download')
    :param log_dir: Directory to store log files (default: 'data/logs/insider_trading')
    :param level: Logging level (default: logging.INFO)
    :param log_format: Log message format string
    :param daily_rotation: If True, one log file per calendar day (default: True)
    :param console_output: If True, also outputs logs to console (default: False)

    :return: Configured logger instance

    Example:
        >>> logger = setup_logger('insider_trading.download', console_output=True)
        >>> logger.info('Fetching live/insiders?date=20220214')
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Handlers are attached once per logger name
    if logger.handlers:
        return logger

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(log_format)

    if daily_rotation:
        log_date = dt.datetime.now().strftime('%Y-%m-%d')
        log_file = log_path / f"insider_trading_{log_date}.log"
    else:
        log_file = log_path / f"{name.replace('.', '_')}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


class LoggerFactory:
    """
    Creates loggers sharing one directory and level, e.g. one per pipeline stage.

    Example:
        >>> factory = LoggerFactory(log_dir='data/logs/insider_trading', level=logging.DEBUG)
        >>> fetch_logger = factory.get_logger('insider_trading.fetch')
        >>> merge_logger = factory.get_logger('insider_trading.merge')
    """

    def __init__(
        self,
        log_dir: str | Path = "data/logs/insider_trading",
        level: int = logging.INFO,
        log_format: str = DEFAULT_FORMAT,
        daily_rotation: bool = True,
        console_output: bool = False
    ):
        self.log_dir = log_dir
        self.level = level
        self.log_format = log_format
        self.daily_rotation = daily_rotation
        self.console_output = console_output

    def get_logger(self, name: str) -> logging.Logger:
        """
        :param name: Logger name
        :return: Logger configured with the factory settings
        """
        return setup_logger(
            name=name,
            log_dir=self.log_dir,
            level=self.level,
            log_format=self.log_format,
            daily_rotation=self.daily_rotation,
            console_output=self.console_output
        )
