#main.py
"""
Main entry point for the Smart EC Logger.
Installs a last-resort exception hook and hands over to the command-line interface.
"""

import logging             # Imports logging to record uncaught errors
import sys                 # Imports sys to install the exception hook

from sensor_communication.cli import cli  # Imports the click command group


def setup_exception_handling(logger):
    """
    Configures a global exception handler so unexpected errors end up in the log.
    logger: The Logger instance to record errors.
    """

    def handle_exception(exc_type, exc_value, exc_traceback):
        """
        Handles all uncaught exceptions.
        Ctrl+C exits quietly; anything else is logged with its traceback.
        """
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.error("Uncaught exception:", exc_info=(exc_type, exc_value, exc_traceback))

    # Assigns sys.excepthook to our custom exception handler
    sys.excepthook = handle_exception


def main():
    """
    Starts the Smart EC Logger command-line interface.
    """
    setup_exception_handling(logging.getLogger("sensor_communication"))
    cli()


if __name__ == "__main__":
    # Entry point to run the main function
    main()
