#!/usr/bin/env python3

# Find the best icon for any web-site URL

__version__ = '0.1.0'

import getopt
import os
import sys

from loguru import logger

from iconfetcher.config import ResolverConfig
from iconfetcher.resolver import IconResolver, resolve_icon, resolve_icon_async

__all__ = ['IconResolver', 'ResolverConfig', 'resolve_icon', 'resolve_icon_async', 'get_version', 'main']

USAGE = ('iconfetcher -r [site url, resolve once and print] -c [site url, list candidates] '
         '-h [host] -p [port] -l [debug level - TRACE, DEBUG, INFO(default), SUCCESS, WARNING, ERROR, CRITICAL]')


def get_version():
    return __version__


def configure_logger(logger_level):
    # Without this, a logger will be duplicated
    logger.remove()
    log_level_for_stdout = {'TRACE', 'DEBUG', 'INFO', 'SUCCESS'}
    logger.configure(handlers=[
        {"sink": sys.stdout, "level": logger_level,
         "filter": lambda record: record['level'].name in log_level_for_stdout},
        {"sink": sys.stderr, "level": logger_level,
         "filter": lambda record: record['level'].name not in log_level_for_stdout},
    ])


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv

    host = ''
    port = os.environ.get('PORT') or 5000
    resolve_url = None
    candidates_url = None

    try:
        opts, args = getopt.getopt(argv, "r:c:h:p:l:", "port")
    except getopt.GetoptError:
        print(USAGE)
        sys.exit(2)

    # Set a default logger level
    logger_level = 'INFO'
    # Set a logger level via shell env variable
    if os.getenv("LOGGER_LEVEL"):
        level = os.getenv("LOGGER_LEVEL")
        logger_level = int(level) if level.isdigit() else level.upper()

    for opt, arg in opts:
        if opt == '-r':
            resolve_url = arg

        if opt == '-c':
            candidates_url = arg

        if opt == '-h':
            host = arg

        if opt == '-p':
            port = int(arg)

        if opt == '-l':
            logger_level = int(arg) if arg.isdigit() else arg.upper()

    try:
        configure_logger(logger_level)
    # Catch negative number or wrong log level name
    except ValueError:
        print("Available log level names: TRACE, DEBUG, INFO(default), SUCCESS,"
              " WARNING, ERROR, CRITICAL")
        sys.exit(2)

    try:
        config = ResolverConfig.from_env()
    except ValueError as e:
        logger.critical(f"ERROR: Could not read ICON_* settings from the environment - {str(e)}")
        sys.exit(2)

    if candidates_url:
        from iconfetcher.candidates import candidate_urls
        for url in candidate_urls(candidates_url, size=config.icon_size):
            print(url)
        return

    if resolve_url:
        print(IconResolver(config=config).resolve(resolve_url))
        return

    from werkzeug.serving import run_simple
    from iconfetcher.flask_app import iconfetcher_app

    app = iconfetcher_app(config=config)
    listen_host = '0.0.0.0' if host == '' else host
    logger.info(f"Starting iconfetcher v{__version__} on {listen_host}:{port}")
    run_simple(listen_host, int(port), app, threaded=True)
