#!/usr/bin/env python3
"""
Run the HAP Intel JSON API locally.

Equivalent to `flask --app web_dashboard/app.py run` with logging set up.
"""
import argparse
import logging

from web_dashboard.app import app


def main(argv=None):
    parser = argparse.ArgumentParser(description="Serve the HAP Intel API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--debug", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    print(f"HAP Intel API on http://{args.host}:{args.port}/api")
    app.run(debug=args.debug, host=args.host, port=args.port, use_reloader=False)


if __name__ == '__main__':
    main()
