'''
This module provides a logger class for console and file logging with verbosity control.
It is used by the eigensolvers to report the progress of the restart loop
(converged counts, adjusted restart sizes, final status).

@note If one wants to use file logging, the environment variable PYLOGFILE should be set to a non-zero value.
@note If one wants to disable colored output, the environment variable PYLOGCOLORS should be set to '0'.

-------------------------------------------------------
file        :   arnoldi_python/common/flog.py
description :   Console / file logger with indentation levels and verbosity control.
-------------------------------------------------------
'''

__all__         = [
    "Logger",
    "Colors",
    "get_global_logger"
]

import os
import re
import sys
import logging
import threading
from datetime import datetime
from typing import Optional, Union

######################################################
#! PRINT THE OUTPUT WITH A GIVEN COLOR
######################################################

class Colors:
    """
    ANSI colors for console output.

    Attributes:
        red, green, yellow, blue (str):
            ANSI escape codes for the given text color.
        white (str):
            ANSI escape code resetting the color to default.
    """

    red     = "\033[31m"
    green   = "\033[32m"
    yellow  = "\033[33m"
    blue    = "\033[34m"
    white   = "\033[0m"

    _MAPPING = {
        "red"   : red,
        "green" : green,
        "yellow": yellow,
        "blue"  : blue,
        "white" : white
    }

    def __init__(self, color : str):
        self.color = color

    def __str__(self) -> str:
        return Colors._MAPPING.get(self.color, Colors.white)

    def __call__(self, text: str) -> str:
        """
        Apply the color to the given text.
        """
        return f"{self}{text}{Colors.white}"

# Regex for ANSI colour codes (CSI sequences: ESC [ ... m)
_ansi_escape = re.compile(r'\x1b\[[0-9;]*m')

class StripAnsiFormatter(logging.Formatter):
    ''' Formatter for log files - colours make no sense there. '''
    def format(self, record):
        msg = super().format(record)
        return _ansi_escape.sub('', msg)

######################################################
#! PRINT THE OUTPUT WITH A GIVEN LEVEL
######################################################

ENV_LOGGER_FILE     = 'PYLOGFILE'
ENV_LOGGER_COLORS   = 'PYLOGCOLORS'

# Track already configured logger names to prevent duplicate handlers
_CONFIGURED_LOGGERS = set()

class Logger:
    """
    Logger class for handling console and file logging with verbosity control.

    Messages can be indented with the ``lvl`` argument, which renders as
    ``\\t * lvl + '->'`` in front of the message.
    """

    LEVELS = {
        logging.DEBUG   : 'debug',
        logging.INFO    : 'info',
        logging.WARNING : 'warning',
        logging.ERROR   : 'error'
    }

    LEVELS_R = {v: k for k, v in LEVELS.items()}

    def __init__(self,
                name            : str                   = "Global",
                logfile         : Optional[str]         = None,
                lvl             : Union[int, str]       = logging.INFO,
                append_ts       : bool                  = False,
                use_ts_in_cmd   : bool                  = False):
        """
        Initialize the logger instance.

        Args:
            name (str):
                Name of the underlying ``logging`` logger.
            logfile (str):
                Name of the log file (only used when PYLOGFILE is set).
            lvl (int | str):
                Logging level (default: logging.INFO).
            append_ts (bool):
                Whether to append a timestamp to the log file name.
            use_ts_in_cmd (bool):
                Whether to use a timestamp in console output.
        """
        self.now                = datetime.now()
        self.now_str            = self.now.strftime("%d_%m_%Y_%H-%M_%S")
        self.lvl                = Logger.LEVELS_R.get(lvl, logging.INFO) if isinstance(lvl, str) else lvl
        self.handler_added      = False
        self.use_console_ts     = use_ts_in_cmd
        self.has_colors         = sys.stdout.isatty() and os.environ.get(ENV_LOGGER_COLORS, '1') != '0'

        logger_name             = name or __name__
        self.logger             = logging.getLogger(logger_name)
        self.logger.setLevel(self.lvl)
        self.logger.propagate   = False

        console_fmt = '%(asctime)s [%(levelname)s] %(message)s' if use_ts_in_cmd else '[%(levelname)s] %(message)s'

        # a logger name gets exactly one console handler
        for h in list(self.logger.handlers):
            self.logger.removeHandler(h)
            h.close()

        ch = logging.StreamHandler(sys.stdout)
        ch.setLevel(self.lvl)
        ch.setFormatter(logging.Formatter(console_fmt, datefmt="%d_%m_%Y_%H-%M_%S"))
        self.logger.addHandler(ch)
        _CONFIGURED_LOGGERS.add(logger_name)

        if logfile is not None and os.environ.get(ENV_LOGGER_FILE, '0') != '0':
            self.logfile = (logfile.split('.log')[0] if logfile.endswith('.log') else f'{logfile}') if len(logfile) > 0 else self.now_str
            if append_ts:
                self.logfile += f'_{self.now_str}'
            self.configure("./log")
        else:
            self.logfile = self.now_str

    # --------------------------------------------------------------

    @staticmethod
    def colorize(txt: str, color: Optional[str]):
        """
        Apply color to the given text (for console output).
        """
        if not color or color.lower() == 'white':
            return str(txt)
        return Colors(color)(txt)

    # --------------------------------------------------------------

    def configure(self, directory: str):
        """
        Attach a file handler writing to ``directory/<logfile>.log``.

        Args:
            directory (str): Path to the directory where log files will be stored.
        """
        base_name       = self.now_str if len(self.logfile) == 0 else self.logfile
        self.logfile    = os.path.join(directory, f'{base_name}.log')
        os.makedirs(directory, exist_ok=True)

        if not self.handler_added:
            self._f_handler = logging.FileHandler(self.logfile, encoding='utf-8')
            self._f_handler.setLevel(self.lvl)
            self._f_handler.setFormatter(StripAnsiFormatter('%(asctime)s [%(levelname)s] %(message)s', datefmt="%d_%m_%Y_%H-%M-%S"))
            self.logger.addHandler(self._f_handler)
            self.handler_added = True
            self.logger.info(f"Log file created: {self.logfile}")

    # --------------------------------------------------------------

    @staticmethod
    def print_tab(lvl=0):
        """
        Generate indentation for message formatting.
        """
        return '\t' * lvl + ('->' if lvl > 0 else '')

    @staticmethod
    def print(msg: str, lvl=0):
        """
        Format a message with the indentation of a given level.
        """
        return f"{Logger.print_tab(lvl)}{msg}"

    # --------------------------------------------------------------

    def info(self, msg: str, lvl=0, verbose=True, color=None):
        """
        Log an informational message if verbosity is enabled.
        """
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.info(Logger.print(msg, lvl))

    def debug(self, msg: str, lvl=0, verbose=True, color=None):
        """
        Log a debug message if verbosity is enabled.
        """
        if not verbose:
            return
        if color is not None and self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.debug(Logger.print(msg, lvl))

    def warning(self, msg: str, lvl=0, verbose=True, color='yellow'):
        """
        Log a warning message if verbosity is enabled.
        """
        if not verbose:
            return
        if self.has_colors:
            msg = self.colorize(msg, color)
        self.logger.warning(Logger.print(msg, lvl))

    # --------------------------------------------------------------

    def title(self, tail: str, desired_size: int=50, fill: str = '=', lvl=0, verbose=True, color=None):
        """
        Log a title centered between filler characters.
        """
        if not verbose:
            return
        if len(tail) + 2 + lvl * 6 > desired_size:
            self.info(tail, lvl, verbose)
            return

        fill_size   = (desired_size - len(tail)) // (2 * len(fill))
        out         = (fill * fill_size) + f"{tail}" + (fill * fill_size)
        if len(out) < desired_size:
            out += fill[0] * (desired_size - len(out))
        self.info(out[:desired_size], lvl, verbose, color)

######################################################

_G_LOGGER     = None
_G_LOGGER_PID = None
_G_LOCK       = threading.Lock()

def get_global_logger(**kwargs) -> Logger:
    """
    One Logger wrapper per process (PID), safe across threads/forks.

    Args:
        **kwargs: Arguments to pass to the Logger constructor.
        - name (str): Name of the logger (default: "arnoldi_python").
        - lvl (int): Logging level (default: logging.INFO).
        - use_ts_in_cmd (bool): Whether to use timestamps in console output (default: True).
        - logfile (str or None): Path to a logfile (default: None).

    Example
    -------
        >>> logger = get_global_logger()
        >>> logger.info("Restart loop finished.", lvl=1)
    """
    global  _G_LOGGER, _G_LOGGER_PID
    pid     = os.getpid()

    if _G_LOGGER is not None and _G_LOGGER_PID == pid:
        return _G_LOGGER

    with _G_LOCK:
        if _G_LOGGER is not None and _G_LOGGER_PID == pid:
            return _G_LOGGER

        _G_LOGGER = Logger(
            name            = kwargs.get("name",            "arnoldi_python"),
            lvl             = kwargs.get("lvl",             logging.INFO),
            append_ts       = kwargs.get("append_ts",       True),
            use_ts_in_cmd   = kwargs.get("use_ts_in_cmd",   True),
            logfile         = kwargs.get("logfile",         None),
        )
        _G_LOGGER_PID = pid
    return _G_LOGGER

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
