# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains citizen authentication and problem-document error
handling for the complaint lifecycle API.
"""
