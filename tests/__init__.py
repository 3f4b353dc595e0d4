# Copyright dirdiff contributors
#
# tests/__init__.py - Directory diff test package
#
# This file is part of the dirdiff project.
#
# SPDX-License-Identifier: Apache-2.0
import logging

log = logging.getLogger()
log.setLevel(logging.DEBUG)
formatter = logging.Formatter('%(asctime)s %(levelname)s %(name)s %(message)s')
file_handler = logging.FileHandler("test.log")
file_handler.setFormatter(formatter)
console_handler = logging.StreamHandler()
console_handler.setFormatter(formatter)
log.addHandler(file_handler)
log.addHandler(console_handler)


class MockArgs(object):
    path_a = None
    path_b = None
    debug = None
    verbose = 0
    quiet = True
    no_legend = False
    color = "never"
    ignore_patterns = None
    prune_patterns = None
    default_prune = True
    max_depth = None
    paranoid = False
    patch_depth = None
    patch_dir = None
    use_magic_file_type = False
    output_format = "tree"
    pretty = False
