"""
Relational Operator Placeholders

Markers used inside query options to express comparison operators, e.g.::

    {"where": {"age": {Op.gt: 18}}}

Each placeholder is compared by identity, like a symbol, so two separately
created ``Operator("gt")`` instances are different dictionary keys. Key
derivation collapses both to their label, which keeps cache keys stable.
"""


class Operator:
    """A named operator marker."""

    __slots__ = ("label",)

    def __init__(self, label: str):
        if not label:
            raise ValueError("Operator label must not be empty")
        self.label = label

    def __repr__(self) -> str:
        return f"Op.{self.label}"

    def __str__(self) -> str:
        return self.label


class Op:
    """Registry of the standard relational operators."""

    eq = Operator("eq")
    ne = Operator("ne")
    gt = Operator("gt")
    gte = Operator("gte")
    lt = Operator("lt")
    lte = Operator("lte")
    is_ = Operator("is")
    not_ = Operator("not")
    in_ = Operator("in")
    not_in = Operator("notIn")
    like = Operator("like")
    not_like = Operator("notLike")
    ilike = Operator("iLike")
    between = Operator("between")
    not_between = Operator("notBetween")
    and_ = Operator("and")
    or_ = Operator("or")
