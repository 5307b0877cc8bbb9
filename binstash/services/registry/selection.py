# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Variant Selection

Single responsibility: Let the user pick one of several matching packages
"""

from typing import Callable, List

from binstash.models.registry_models import ResolvedPackage
from binstash.services.prompt import AskFunction, choose_index


def select_package_variant(
    packages: List[ResolvedPackage],
    ask: AskFunction,
    emit: Callable[[str], None] = print
) -> ResolvedPackage:
    """
    Ask which of several matching packages to use.

    Args:
        packages: Matching packages (more than one)
        ask: Prompt function
        emit: Output function for the list

    Returns:
        Copy of the chosen package
    """
    emit(f"Multiple packages available for {packages[0].package.name}")
    labels = []
    for pkg in packages:
        label = f"{pkg.package.full_name('/')} [{pkg.collection}] ({pkg.repo_name})"
        if pkg.package.version:
            label += f" {pkg.package.version}"
        labels.append(label)

    index = choose_index(labels, ask, "Select a variant", emit)
    return packages[index].model_copy(deep=True)
