#  SPDX-License-Identifier: MPL-2.0
#  Copyright 2020-2022 John Mille <john@compose-x.io>

"""
Most commonly used functions shared across all modules.
"""


def az_index_letters(azs_count: int) -> list:
    """
    Letters used to suffix per-AZ resource titles, i.e. PublicSubnetA

    :param int azs_count: number of availability zones
    :return: list of upper case letters
    """
    return [chr(ord("A") + index) for index in range(azs_count)]
