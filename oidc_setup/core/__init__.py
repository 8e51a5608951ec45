"""Core setup logic, independent of the command-line wrapper.

Module Structure:
    - keycloak/     : Low-level Keycloak Admin API client and services
    - results.py    : StepResult / SetupReport outcome types
    - sequencer.py  : Ordered setup pipeline and verification
    - summary.py    : Operator-facing summary rendering
"""
