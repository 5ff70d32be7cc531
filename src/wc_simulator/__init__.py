"""
Well-Control Simulator
======================

Kill-sheet calculator, well-control physics tick engine and a Modbus TCP
telemetry adapter for operator training consoles.

Author: Guilherme F. G. Santos
Date: January 2026
License: MIT
"""

__version__ = "1.0.0"
__author__ = "Guilherme F. G. Santos"
