import math
import torch


def dot(a:torch.Tensor, b:torch.Tensor)->float:
    """ Inner product of two dense vectors

    Parameters
    ----------
    a: torch.Tensor
        [n]
    b: torch.Tensor
        [n]

    Returns
    -------
    float
        sum(a * b), NaN and Inf propagate
    """
    return torch.dot(a, b).item()


def norm(v:torch.Tensor)->float:
    """Euclidean norm sqrt(v . v)"""
    return math.sqrt(dot(v, v))


def axpby(a:float, x:torch.Tensor, b:float, y:torch.Tensor)->torch.Tensor:
    """ y <- a * x + b * y, in place

    Parameters
    ----------
    a: float
    x: torch.Tensor
        [n]
    b: float
    y: torch.Tensor
        [n] overwritten with the result

    Returns
    -------
    torch.Tensor
        y
    """
    if b != 1.0:
        y.mul_(b)
    return y.add_(x, alpha=a)
