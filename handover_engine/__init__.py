"""
Handover decision engine for an LTE RAN controller.

Logic modules read terminal and cell state from the controller's
repository and emit LTE-to-LTE handover commands, either towards the
nearest cell or towards the cell recommended by a trained scoring model.
"""
from handover_engine.engine import HandoverLogicModule, create_logic_module
from handover_engine.commands import HandoverCommand, CommandEmitter

__version__ = "0.1.0"

__all__ = [
    'HandoverLogicModule',
    'create_logic_module',
    'HandoverCommand',
    'CommandEmitter',
]
