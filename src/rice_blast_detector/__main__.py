"""
Package entry point for python -m execution.

USAGE:
    python -m rice_blast_detector dashboard       # Launch web dashboard
    python -m rice_blast_detector analyze IMAGE   # Analyze one image
    python -m rice_blast_detector report          # Print statistics
    python -m rice_blast_detector reset           # Clear statistics
"""

from rice_blast_detector.cli import main

if __name__ == "__main__":
    main()
