"""
Verb modules discovered by the registry include() tests.
"""
