# The LazySet protocol: every set is queried only through its support vector.
import copy
import logging
import numpy as np
from scipy import sparse

import directionOps as dops
from setErrors import DimensionMismatchError, NumericTypeMismatchError, UnsupportedOperationError

logger = logging.getLogger(__name__)

class LazySet:
	# Let numpy hand binary operators (M @ X) over to the set.
	__array_ufunc__ = None

	# Whether the set is parameterized by exact rationals.
	exact = False

	def dim(self):
		raise NotImplementedError

	# Support vector in a direction that was already checked and converted.
	def _sigma(self, d):
		raise NotImplementedError

	def supportVector(self, d):
		return supportVector(d, self)

	def supportFunction(self, d):
		return supportFunction(d, self)

	def anElement(self):
		return self.supportVector(dops.unitVector(0, self.dim(), 1, self.exact))

	def isBounded(self):
		return isBoundedUnitDimensions(self)

	def isEmpty(self):
		return False

	# Polyhedral sets can list their constraints exactly.
	def isPolyhedral(self):
		return False

	def constraintsList(self):
		raise UnsupportedOperationError("{} has no exact constraint representation"
										.format(type(self).__name__))

	def numericKind(self):
		return "exact" if self.exact else "float"

	def copy(self):
		return copy.deepcopy(self)

	# Names of the fields compared by ==.
	_eqFields = ()

	# Two sets are equal only if they have the same concrete type and equal fields.
	def __eq__(self, other):
		if not isinstance(other, LazySet):
			return NotImplemented
		if (type(self) is not type(other)):
			return False

		for f in self._eqFields:
			if not _fieldEqual(getattr(self, f), getattr(other, f)):
				return False
		return True

	def __ne__(self, other):
		eq = self.__eq__(other)
		if eq is NotImplemented:
			return eq
		return not eq

	__hash__ = None

	def __add__(self, other):
		import setOperations as sop
		return sop.MinkowskiSum(self, other)

	def __mul__(self, other):
		import setOperations as sop
		return sop.CartesianProduct(self, other)

	def __rmatmul__(self, M):
		import setOperations as sop
		return sop.LinearMap(M, self)

	def __repr__(self):
		fields = ", ".join("{}={!r}".format(f, getattr(self, f)) for f in self._eqFields)
		return "{}({})".format(type(self).__name__, fields)

def _fieldEqual(a, b):
	if sparse.issparse(a) or sparse.issparse(b):
		if not (sparse.issparse(a) and sparse.issparse(b)) or a.shape != b.shape:
			return False
		return (a != b).nnz == 0
	if isinstance(a, np.ndarray) or isinstance(b, np.ndarray):
		a = np.asarray(a)
		b = np.asarray(b)
		return a.shape == b.shape and bool(np.all(a == b))
	if isinstance(a, (list, tuple)):
		return (isinstance(b, (list, tuple)) and len(a) == len(b)
				and all(_fieldEqual(x, y) for x, y in zip(a, b)))
	return a == b

# Bring numeric data to the number type of a set. Integers are promoted,
# but floats and Fractions are never mixed.
def coerce(x, exact):
	raw = np.asarray(x)
	if raw.dtype.kind in "iub":
		return dops.asArray(raw, exact)
	if (raw.dtype == object) != bool(exact):
		raise NumericTypeMismatchError("cannot mix {} data with a {} set".format(
			"exact" if raw.dtype == object else "float", "exact" if exact else "float"))
	return dops.asArray(raw, exact)

# Common number type of a collection of sets.
def commonKind(sets):
	kinds = set(bool(S.exact) for S in sets)
	if (len(kinds) > 1):
		raise NumericTypeMismatchError("cannot combine exact and float sets")
	return kinds.pop() if kinds else False

def checkDirection(d, S):
	d = coerce(d, S.exact)
	if (d.ndim != 1):
		d = d.ravel()
	if (d.size != S.dim()):
		raise DimensionMismatchError(S.dim(), d.size)
	return d

# Support vector of S in direction d. A zero direction gives some element of S.
def supportVector(d, S):
	d = checkDirection(d, S)
	return S._sigma(d)

# Support function of S in direction d; +inf if S is unbounded in d.
def supportFunction(d, S):
	d = checkDirection(d, S)
	return dops.dotSafe(d, S._sigma(d))

sigma = supportVector
rho = supportFunction

def anElement(S):
	return S.anElement()

# Check boundedness with 2n support function queries along the axes.
def isBoundedUnitDimensions(S):
	n = S.dim()
	for i in range(n):
		for o in [1, -1]:
			d = dops.unitVector(i, n, o, S.exact)
			if (supportFunction(d, S) == float('inf')):
				logger.debug("set is unbounded along axis %d (sign %d)", i, o)
				return False
	return True

def isBounded(S):
	return S.isBounded()

# Lower and upper bounds of the smallest axis-aligned box containing S.
def boxBounds(S):
	n = S.dim()
	lo = np.empty(n, dtype=object if S.exact else float)
	hi = np.empty(n, dtype=object if S.exact else float)
	for i in range(n):
		hi[i] = supportFunction(dops.unitVector(i, n, 1, S.exact), S)
		lo[i] = -supportFunction(dops.unitVector(i, n, -1, S.exact), S)
	return lo, hi

# Center and radius of the enclosing infinity-norm ball with the box's center.
def _ballinfParameters(S):
	lo, hi = boxBounds(S)
	center = (hi + lo) / 2
	radius = np.max((hi - lo) / 2)
	return center, radius

def _checkNorm(p, what):
	if (p != float('inf')):
		raise UnsupportedOperationError("the {} for p={} is not implemented".format(what, p))

# Norm of the smallest origin-centered ball containing the enclosing box.
def norm(S, p=float('inf')):
	_checkNorm(p, "norm")
	center, radius = _ballinfParameters(S)
	return np.max(np.abs(center)) + radius

def radius(S, p=float('inf')):
	_checkNorm(p, "radius")
	return _ballinfParameters(S)[1]

def diameter(S, p=float('inf')):
	return radius(S, p) * 2

# Simple H-representation (A, b) of a polyhedral set.
def toSimpleHrep(S):
	constraints = S.constraintsList()
	if (len(constraints) == 0):
		return np.zeros((0, S.dim())), np.zeros(0)
	A = np.vstack([c.a for c in constraints])
	b = np.array([c.b for c in constraints], dtype=A.dtype)
	return A, b
