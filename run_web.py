#!/usr/bin/env python3
"""
Main entry point for the Squadra web application.

This script launches the Flask-based web server. Host, port and the
auto-save directory are read from the environment (see ``squadra.config``).
"""
from squadra.ui.web_app import run_web_app

if __name__ == "__main__":
    run_web_app()
