"""
This module holds all of the command classes for condwait's main entrypoint
"""

# Local
from .base import CmdBase
from .wait_cmds import WaitConditionCmd, WaitConvergenceCmd, WaitPodsCmd
