# Copyright dirdiff contributors
#
# tests/fsdiff/__init__.py - Directory diff engine test package
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
