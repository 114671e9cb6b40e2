# obdmaster/logging_config.py
"""
Конфигурация логирования для ObdMaster.
Пишет обмен с адаптером ELM327 (TX/RX) отдельно от остальных логов.
"""

import logging
import logging.handlers
import os
from pathlib import Path

def setup_logging(log_level: str = "DEBUG", log_to_file: bool = True, log_dir: str = "logs"):
    """
    Настройка системы логирования.

    Args:
        log_level: Уровень логирования (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Записывать логи в файл или только в консоль
        log_dir: Каталог для файлов логов
    """

    log_path = Path(log_dir)
    if log_to_file:
        log_path.mkdir(parents=True, exist_ok=True)

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d [%(name)16s] %(levelname)8s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)14s] %(levelname)5s: %(message)s",
        datefmt="%H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)  # в консоль без hex-дампов
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "obd_master.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(getattr(logging, log_level))
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        # Только транспорт и канал команд: сырые байты адаптера
        adapter_handler = logging.handlers.RotatingFileHandler(
            log_path / "adapter_communication.log",
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=10
        )
        adapter_handler.setLevel(logging.DEBUG)
        adapter_handler.setFormatter(detailed_formatter)
        adapter_handler.addFilter(lambda record: record.name.startswith("elm."))
        root_logger.addHandler(adapter_handler)

    loggers_config = {
        'elm.transport': logging.DEBUG,
        'elm.channel': logging.DEBUG,
        'ObdSession': logging.DEBUG,
    }

    for logger_name, level in loggers_config.items():
        logging.getLogger(logger_name).setLevel(level)

    setup_log = logging.getLogger("LoggingSetup")
    setup_log.info("=== LOGGING SYSTEM INITIALIZED ===")
    setup_log.info("Log level: %s", log_level)
    setup_log.info("Log to file: %s", log_to_file)
    if log_to_file:
        setup_log.info("Log directory: %s", log_path.absolute())


def get_logger(name: str) -> logging.Logger:
    """Получить логгер с заданным именем."""
    return logging.getLogger(name)


def log_hex_data(logger: logging.Logger, level: int, message: str, data: bytes, max_bytes: int = 64):
    """
    Логирование ответа адаптера: hex + ASCII, с ограничением размера.

    Args:
        logger: Логгер для вывода
        level: Уровень логирования (logging.DEBUG, logging.INFO и т.д.)
        message: Описательное сообщение
        data: Сырые байты
        max_bytes: Максимальное количество байт для отображения
    """
    if not logger.isEnabledFor(level):
        return

    text = data.decode("ascii", errors="replace")
    if len(data) <= max_bytes:
        logger.log(level, "%s (%d bytes): %s %r", message, len(data), data.hex().upper(), text)
    else:
        hex_start = data[:max_bytes//2].hex().upper()
        hex_end = data[-max_bytes//2:].hex().upper()
        logger.log(level, "%s (%d bytes): %s...%s",
                   message, len(data), hex_start, hex_end)


def log_command_summary(logger: logging.Logger, direction: str, command: str, details: str = ""):
    """
    Сводка по команде адаптеру.

    Args:
        logger: Логгер для вывода
        direction: "TX" или "RX"
        command: Текст команды без ``\\r`` (``ATZ``, ``010C``)
        details: Дополнительные детали
    """
    marker = ">>>" if direction == "TX" else "<<<"
    logger.info("%s ELM %s %s", marker, command.strip(), details)


# Инициализация при импорте (по умолчанию выключена)
if os.getenv("OBD_MASTER_AUTO_LOGGING", "0") == "1":
    log_level = os.getenv("OBD_MASTER_LOG_LEVEL", "DEBUG")
    log_to_file = os.getenv("OBD_MASTER_LOG_TO_FILE", "1") == "1"
    setup_logging(log_level, log_to_file)
