# This file is part of nocloud-seed. See LICENSE file for license information.
