# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

"""Idempotent provisioning for Arch-family workstations."""

__version__ = "0.1.0"
