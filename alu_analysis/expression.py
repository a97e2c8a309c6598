"""
alu_analysis/expression.py
══════════════════════════

Interned symbolic expressions over the fourteen inputs.

Representation
──────────────
An expression is one of two node kinds:

    ┌──────────────┐
    │ Poly(p)      │   linear polynomial in the inputs (fast path)
    ├──────────────┤
    │ Op(op, l, r) │   operator applied to two sub-expressions
    └──────────────┘

Nodes live in an :class:`ExpressionArena` and are addressed by integer id.
Interning is content-addressed: building a node whose contents already
exist returns the existing id, so structurally equal expressions share one
id and sub-expression sharing comes for free.  Children are interned before
their parents, so comparing two nodes never has to look deeper than the
child ids.

Simplification
──────────────
:meth:`ExpressionArena.operation` interns a node and rewrites it to a fixed
point.  Rules, in the order they are tried:

    1. constant folding                   3 + 4 → 7
    2. identity elimination               e + 0 → e, e * 1 → e, e / 1 → e
    3. annihilation                       e * 0 → 0
    4. polynomial folding                 p + q → (p+q), p * c → (c·p)
    5. modulus push-through               (k·m·a + b) % m → b % m
                                          p % m → (p mod m) % m
                                          e % m → e   when e ∈ [0, m-1]
    6. division by a constant             p / d → p // d  when the remainders
                                          of every term cannot carry
                                          e / d → 0      when e ∈ [0, d-1]
                                          (k·d·e) / d → k·e
                                          (k·d·a + b) / d → (k·d·a) / d
                                                         when b ∈ [0, d-1]
    7. equality collapse                  disjoint ranges → 0
                                          identical singletons → 1
                                          e == e → 1

Rules that rely on value ranges only fire on non-negative operands, which
is where ``div`` and ``mod`` agree with floor arithmetic.  The loop is
bounded by :meth:`AnalysisConfig.rewrite_budget`; running past it raises
:class:`~alu_analysis.errors.RewriteLimitExceeded` instead of hanging.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Set, Tuple, Union

import sexpdata
from sexpdata import Symbol

from alu_analysis.config import AnalysisConfig
from alu_analysis.errors import InvariantViolation, RewriteLimitExceeded
from alu_analysis.instructions import OpName
from alu_analysis.polynomial import Polynomial
from alu_analysis.value_range import ValueRange, forward

_log = logging.getLogger(__name__)

ExprId = int


# ═══════════════════════════════════════════════════════════════════════════
#  NODES
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Poly:
    """Leaf node: a linear polynomial in the inputs."""

    poly: Polynomial


@dataclass(frozen=True, slots=True)
class Op:
    """Interior node: ``lhs ⟨op⟩ rhs`` over interned child ids."""

    op: OpName
    lhs: ExprId
    rhs: ExprId


Node = Union[Poly, Op]


# ═══════════════════════════════════════════════════════════════════════════
#  ARENA
# ═══════════════════════════════════════════════════════════════════════════


class ExpressionArena:
    """
    Owns every expression node built during one analysis.

    Parameters
    ----------
    config : AnalysisConfig, optional
        Supplies the rewrite budget.

    Examples
    --------
    >>> from alu_analysis.instructions import InputName
    >>> arena = ExpressionArena()
    >>> w = arena.polynomial(Polynomial.input(InputName.first()))
    >>> e = arena.operation(OpName.ADD, w, arena.constant(7))
    >>> arena.render(e)
    'i1 + 7'
    """

    def __init__(self, config: Optional[AnalysisConfig] = None) -> None:
        self.config = config or AnalysisConfig()
        self._nodes: List[Node] = []
        self._ids: Dict[Node, ExprId] = {}
        self._ranges: Dict[ExprId, ValueRange] = {}
        self._depths: Dict[ExprId, int] = {}
        self._simplified: Dict[ExprId, ExprId] = {}
        self._multiples: Dict[Tuple[ExprId, int], bool] = {}
        self.rewrites = 0

    def __len__(self) -> int:
        return len(self._nodes)

    # ---- Interning -------------------------------------------------------

    def node(self, eid: ExprId) -> Node:
        return self._nodes[eid]

    def intern(self, node: Node) -> ExprId:
        """Return the id of *node*, adding it if it is new."""
        existing = self._ids.get(node)
        if existing is not None:
            return existing
        if isinstance(node, Op):
            if not (0 <= node.lhs < len(self._nodes) and 0 <= node.rhs < len(self._nodes)):
                raise InvariantViolation(f"operation refers to unknown children: {node!r}")
        elif not isinstance(node, Poly):
            raise InvariantViolation(f"not an expression node: {node!r}")
        eid = len(self._nodes)
        self._nodes.append(node)
        self._ids[node] = eid
        return eid

    def polynomial(self, poly: Polynomial) -> ExprId:
        return self.intern(Poly(poly))

    def constant(self, value: int) -> ExprId:
        return self.intern(Poly(Polynomial.constant(value)))

    def raw_operation(self, op: OpName, lhs: ExprId, rhs: ExprId) -> ExprId:
        """Intern ``lhs ⟨op⟩ rhs`` without simplifying it."""
        return self.intern(Op(op, lhs, rhs))

    def operation(self, op: OpName, lhs: ExprId, rhs: ExprId) -> ExprId:
        """Intern ``lhs ⟨op⟩ rhs`` and simplify it to a fixed point."""
        return self.simplify(self.raw_operation(op, lhs, rhs))

    # ---- Queries ---------------------------------------------------------

    def constant_value(self, eid: ExprId) -> Optional[int]:
        node = self._nodes[eid]
        if isinstance(node, Poly):
            return node.poly.as_constant()
        return None

    def value_range(self, eid: ExprId) -> ValueRange:
        """Sound range of the expression over all digit assignments."""
        ranges = self._ranges
        for i in self._pending(eid, ranges.__contains__):
            node = self._nodes[i]
            if isinstance(node, Poly):
                ranges[i] = node.poly.value_range()
            elif isinstance(node, Op):
                ranges[i] = forward(node.op, ranges[node.lhs], ranges[node.rhs])
            else:
                raise InvariantViolation(f"not an expression node: {node!r}")
        return ranges[eid]

    def evaluate(self, eid: ExprId, digits: Sequence[int]) -> int:
        """Concrete value of the expression for one digit assignment."""
        values: Dict[ExprId, int] = {}
        for i in self._pending(eid):
            node = self._nodes[i]
            if isinstance(node, Poly):
                values[i] = node.poly.evaluate(digits)
            elif isinstance(node, Op):
                values[i] = node.op.perform(values[node.lhs], values[node.rhs])
            else:
                raise InvariantViolation(f"not an expression node: {node!r}")
        return values[eid]

    def children(self, eid: ExprId) -> Tuple[ExprId, ...]:
        node = self._nodes[eid]
        if isinstance(node, Op):
            return (node.lhs, node.rhs)
        return ()

    def reachable(self, eid: ExprId) -> Set[ExprId]:
        """Ids of every node reachable from *eid*, itself included."""
        seen: Set[ExprId] = set()
        stack = [eid]
        while stack:
            i = stack.pop()
            if i in seen:
                continue
            seen.add(i)
            stack.extend(self.children(i))
        return seen

    def _pending(
        self,
        eid: ExprId,
        known: Callable[[ExprId], bool] = lambda i: False,
        children: Optional[Callable[[ExprId], Tuple[ExprId, ...]]] = None,
    ) -> List[ExprId]:
        """Nodes under *eid* not yet *known*, children before parents.

        A child is always interned before its parent, so ascending id order
        is a dependency order.  The walk stops at known nodes.
        """
        children = children or self.children
        seen: Set[ExprId] = set()
        stack = [eid]
        while stack:
            i = stack.pop()
            if i in seen or known(i):
                continue
            seen.add(i)
            stack.extend(children(i))
        return sorted(seen)

    def size(self, eid: ExprId) -> int:
        """Number of distinct nodes in the expression DAG."""
        return len(self.reachable(eid))

    def depth(self, eid: ExprId) -> int:
        depths = self._depths
        for i in self._pending(eid, depths.__contains__):
            depths[i] = 1 + max((depths[k] for k in self.children(i)), default=0)
        return depths[eid]

    # ═══════════════════════════════════════════════════════════════════
    #  SIMPLIFIER
    # ═══════════════════════════════════════════════════════════════════

    def simplify(self, eid: ExprId) -> ExprId:
        """Rewrite *eid* until no rule fires."""
        done = self._simplified.get(eid)
        if done is not None:
            return done
        budget = self.config.rewrite_budget(self.size(eid))
        current = eid
        for _ in range(budget):
            rewritten = self._rewrite(current)
            if rewritten is None:
                self._simplified[eid] = current
                self._simplified[current] = current
                return current
            _log.debug("rewrite #%d -> #%d", current, rewritten)
            self.rewrites += 1
            current = rewritten
        raise RewriteLimitExceeded(
            f"no fixed point for #{eid} after {budget} rewrites"
        )

    def _rewrite(self, eid: ExprId) -> Optional[ExprId]:
        """Apply the first rule that fires, or return ``None``."""
        node = self._nodes[eid]
        if not isinstance(node, Op):
            return None
        op, l, r = node.op, node.lhs, node.rhs
        lc = self.constant_value(l)
        rc = self.constant_value(r)

        # Constant folding
        if lc is not None and rc is not None:
            return self.constant(op.perform(lc, rc))

        left, right = self._nodes[l], self._nodes[r]
        if op is OpName.ADD:
            if rc == 0:
                return l
            if lc == 0:
                return r
            if isinstance(left, Poly) and isinstance(right, Poly):
                return self.polynomial(left.poly + right.poly)
        elif op is OpName.MUL:
            if lc == 0 or rc == 0:
                return self.constant(0)
            if rc == 1:
                return l
            if lc == 1:
                return r
            if isinstance(left, Poly) and rc is not None:
                return self.polynomial(left.poly.scale(rc))
            if isinstance(right, Poly) and lc is not None:
                return self.polynomial(right.poly.scale(lc))
        elif op is OpName.DIV:
            if rc == 1:
                return l
            if rc is not None and rc > 0:
                return self._rewrite_div(l, rc)
        elif op is OpName.MOD:
            if rc is not None and rc > 0:
                return self._rewrite_mod(l, rc)
        elif op is OpName.EQL:
            return self._rewrite_eql(l, r)
        return None

    # ---- Modulus ---------------------------------------------------------

    def _is_multiple_of(self, eid: ExprId, m: int) -> bool:
        """Is the expression provably a multiple of *m* for every input?"""
        multiples = self._multiples

        def operands(i: ExprId) -> Tuple[ExprId, ...]:
            node = self._nodes[i]
            if isinstance(node, Op) and node.op in (OpName.ADD, OpName.MUL):
                return (node.lhs, node.rhs)
            return ()

        for i in self._pending(eid, lambda i: (i, m) in multiples, operands):
            node = self._nodes[i]
            if isinstance(node, Poly):
                result = all(c % m == 0 for c in node.poly.coefficients)
            elif node.op is OpName.MUL:
                result = multiples[(node.lhs, m)] or multiples[(node.rhs, m)]
            elif node.op is OpName.ADD:
                result = multiples[(node.lhs, m)] and multiples[(node.rhs, m)]
            else:
                result = False
            multiples[(i, m)] = result
        return multiples[(eid, m)]

    def _rewrite_mod(self, l: ExprId, m: int) -> Optional[ExprId]:
        rng = self.value_range(l)
        if rng.start < 0:
            return None
        if rng.end < m:
            return l
        if self._is_multiple_of(l, m):
            return self.constant(0)
        node = self._nodes[l]
        modulus = self.constant(m)
        if isinstance(node, Poly):
            reduced = node.poly.mod_scalar(m)
            if reduced != node.poly:
                return self.operation(OpName.MOD, self.polynomial(reduced), modulus)
            return None
        if node.op is not OpName.ADD:
            return None
        for keep, drop in ((node.lhs, node.rhs), (node.rhs, node.lhs)):
            if self.value_range(keep).start < 0 or self.value_range(drop).start < 0:
                continue
            if self._is_multiple_of(drop, m):
                return self.operation(OpName.MOD, keep, modulus)
            drop_node = self._nodes[drop]
            if isinstance(drop_node, Poly):
                reduced = drop_node.poly.mod_scalar(m)
                if reduced != drop_node.poly:
                    smaller = self.operation(OpName.ADD, keep, self.polynomial(reduced))
                    return self.operation(OpName.MOD, smaller, modulus)
        return None

    # ---- Division --------------------------------------------------------

    def _rewrite_div(self, l: ExprId, d: int) -> Optional[ExprId]:
        rng = self.value_range(l)
        if rng.start < 0:
            return None
        if rng.end < d:
            return self.constant(0)
        node = self._nodes[l]
        if isinstance(node, Poly):
            if node.poly.remainder_bound(d) < d:
                return self.polynomial(node.poly.floor_div_scalar(d))
            return None
        if node.op is OpName.MUL:
            for factor, other in ((node.rhs, node.lhs), (node.lhs, node.rhs)):
                k = self.constant_value(factor)
                if k is not None and k % d == 0:
                    return self.operation(OpName.MUL, other, self.constant(k // d))
            return None
        if node.op is OpName.ADD:
            for whole, rest in ((node.lhs, node.rhs), (node.rhs, node.lhs)):
                rest_range = self.value_range(rest)
                if (
                    self._is_multiple_of(whole, d)
                    and self.value_range(whole).start >= 0
                    and rest_range.start >= 0
                    and rest_range.end < d
                ):
                    return self.operation(OpName.DIV, whole, self.constant(d))
        return None

    # ---- Equality --------------------------------------------------------

    def _rewrite_eql(self, l: ExprId, r: ExprId) -> Optional[ExprId]:
        if l == r:
            return self.constant(1)
        lr, rr = self.value_range(l), self.value_range(r)
        if lr.is_disjoint(rr):
            return self.constant(0)
        if lr.is_single() and lr == rr:
            return self.constant(1)
        return None

    # ═══════════════════════════════════════════════════════════════════
    #  RENDERING
    # ═══════════════════════════════════════════════════════════════════

    def render(self, eid: ExprId, names: Optional[Dict[ExprId, str]] = None) -> str:
        """Infix rendering; ids in *names* are printed by name instead."""
        names = names or {}
        texts: Dict[ExprId, str] = dict(names)
        for i in self._pending(eid, names.__contains__):
            node = self._nodes[i]
            if isinstance(node, Poly):
                texts[i] = str(node.poly)
            else:
                lhs = self._render_operand(node.lhs, texts, names)
                rhs = self._render_operand(node.rhs, texts, names)
                texts[i] = f"{lhs} {node.op.symbol} {rhs}"
        return texts[eid]

    def _render_operand(
        self, eid: ExprId, texts: Dict[ExprId, str], names: Dict[ExprId, str]
    ) -> str:
        text = texts[eid]
        if eid in names:
            return text
        node = self._nodes[eid]
        if isinstance(node, Poly) and len(node.poly.inputs()) + (node.poly.constant_term != 0) <= 1:
            return text
        return f"({text})"

    def listing(self, eid: ExprId) -> List[str]:
        """Render with shared sub-expressions bound to names ``t<id>``.

        Every operation node used by more than one parent gets its own line,
        dependencies first; the last line is the expression itself.
        """
        parents: Dict[ExprId, int] = {}
        for i in self.reachable(eid):
            for k in self.children(i):
                parents[k] = parents.get(k, 0) + 1
        shared = sorted(
            i for i, n in parents.items()
            if n > 1 and isinstance(self._nodes[i], Op)
        )
        names: Dict[ExprId, str] = {}
        lines: List[str] = []
        for i in shared:
            lines.append(f"t{i} = {self.render(i, names)}")
            names[i] = f"t{i}"
        lines.append(self.render(eid, names))
        return lines

    def to_sexp_data(self, eid: ExprId) -> Any:
        """Nested ``sexpdata`` structure for the expression tree."""
        data: Dict[ExprId, Any] = {}
        for i in self._pending(eid):
            node = self._nodes[i]
            if isinstance(node, Poly):
                data[i] = _poly_to_sexp(node.poly)
            else:
                data[i] = [Symbol(node.op.value), data[node.lhs], data[node.rhs]]
        return data[eid]

    def to_sexp(self, eid: ExprId) -> str:
        """S-expression text, e.g. ``(mod (+ i1 7) 26)``."""
        return sexpdata.dumps(self.to_sexp_data(eid))


def _poly_to_sexp(poly: Polynomial) -> Any:
    terms: List[Any] = []
    for name in poly.inputs():
        c = poly.coefficient(name)
        symbol = Symbol(str(name))
        terms.append(symbol if c == 1 else [Symbol("*"), c, symbol])
    if poly.constant_term or not terms:
        terms.append(poly.constant_term)
    if len(terms) == 1:
        return terms[0]
    return [Symbol("+")] + terms
