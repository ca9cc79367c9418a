import os

# Keep test runs from writing daily log files into the project tree.
os.environ.setdefault("LOG_TO_FILE", "false")
