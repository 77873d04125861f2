"""
GSProp subpackage providing argument checks shared by simulator and driver.

.. currentmodule:: gsprop.tools

The following functions are provided

.. autosummary::
   check_count
   check_workers
   check_cancel
"""

import os

from gsprop.errors import Cancelled, InvalidParameter

__all__ = ["check_count", "check_workers", "check_cancel"]


def check_count(n):
    """
    Check a number of draws.

    Parameters
    ----------
    n : :class:`int`
        Number of draws.

    Returns
    -------
    n : :class:`int`

    Raises
    ------
    InvalidParameter
        If ``n`` is not a non-negative integer.
    """
    if int(n) != n or n < 0:
        raise InvalidParameter(f"n must be a non-negative integer, got {n}")
    return int(n)


def check_workers(workers):
    """
    Check a number of worker threads.

    Parameters
    ----------
    workers : :class:`int` or :any:`None`
        Number of workers, None for the number of CPUs.

    Returns
    -------
    workers : :class:`int`

    Raises
    ------
    InvalidParameter
        If ``workers`` is not a positive integer.
    """
    if workers is None:
        return os.cpu_count() or 1
    if int(workers) != workers or workers < 1:
        raise InvalidParameter(f"workers must be a positive integer, got {workers}")
    return int(workers)


def check_cancel(cancel, done):
    """
    Raise :any:`Cancelled` if the cancellation flag is set.

    Parameters
    ----------
    cancel : :class:`threading.Event` or :any:`None`
        Cancellation flag.
    done : :class:`int`
        Number of draws completed so far, reported by the exception.
    """
    if cancel is not None and cancel.is_set():
        raise Cancelled(done)
