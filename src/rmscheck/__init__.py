"""
rmscheck - Age of Empires II Random Map Script checker

Tokenizes, parses and lints random map scripts, reporting problems
with optional automatic fixes.
"""

__version__ = "0.1.0"
__author__ = "rmscheck contributors"

from rmscheck.state import Compatibility
from rmscheck.check import RMSCheck, CheckResult, check
from rmscheck.parser import parse_source
