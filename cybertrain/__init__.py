"""
Cybercrime Investigation Training Platform core.

Timed challenges and module sequencing for law-enforcement training.
"""
