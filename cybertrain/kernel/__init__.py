"""
Kernel layer.

Entities, domain errors, lifecycle events and the progress store boundary.
Engines depend on the kernel; the kernel depends on nothing above it.
"""
