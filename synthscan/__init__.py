# SynthScan - Copyright (C) 2026 SynthScan Developers.
# This file is part of SynthScan.
# See the file 'docs/LICENSE.txt' for license terms.

__version__ = "0.3.0"
