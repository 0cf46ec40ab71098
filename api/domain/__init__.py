# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the Quake Response coordination platform.

This package contains pure business logic functions with no side effects:
the authorization gate, the pin state machine, assignment matching, roster
and directory rules. Registries in ``services`` own state and call into it.
"""
