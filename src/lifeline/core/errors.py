"""
Error types for the Lifeline rule engine.

Only corrupt input data raises.  Ordinary gameplay outcomes (an ineligible
event, an unmet choice requirement, no active character) are reported as
booleans, ``None`` or an unchanged session snapshot.
"""


class DataContractViolation(ValueError):
    """Input data breaks a contract the engine relies on.

    Raised for malformed catalog entries, out-of-range stat values,
    negative ages, or a zero required-stat threshold.
    """
