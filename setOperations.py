# Define all the lazy set operations here.
import copy
import logging
import threading
import numpy as np
from scipy import sparse
from scipy.linalg import expm
from scipy.optimize import minimize_scalar
from scipy.sparse.linalg import expm_multiply

import directionOps as dops
import lpBackend as lpb
from lazySet import LazySet, coerce, commonKind, toSimpleHrep
from leafSets import EmptySet, ZeroSet, HalfSpace, Hyperplane, unboundedVector, hasInfinite
from setErrors import (DimensionMismatchError, InfeasibleSetError, NumericTypeMismatchError,
					   UnsupportedOperationError)

logger = logging.getLogger(__name__)

def _checkSameDim(sets):
	n = sets[0].dim()
	for S in sets[1:]:
		if (S.dim() != n):
			raise DimensionMismatchError(n, S.dim())
	return n

def _checkOperands(sets):
	sets = list(sets)
	if (len(sets) == 0):
		raise ValueError("at least one operand is required")
	for S in sets:
		if not isinstance(S, LazySet):
			raise TypeError("expected a LazySet, got {}".format(type(S).__name__))
	return sets

# Minkowski sum of two sets: sigma(d) = sigma(d, X) + sigma(d, Y).
class MinkowskiSum(LazySet):
	_eqFields = ("X", "Y")

	def __init__(self, X, Y):
		_checkOperands([X, Y])
		_checkSameDim([X, Y])
		self.exact = commonKind([X, Y])
		self.X = X
		self.Y = Y

	def dim(self):
		return self.X.dim()

	def _sigma(self, d):
		return self.X._sigma(d) + self.Y._sigma(d)

	def isEmpty(self):
		return self.X.isEmpty() or self.Y.isEmpty()

# Memoized support vectors per direction. An entry remembers how many operands
# it already includes, so appending operands only extends it.
# Without maxSize there is one entry per queried direction; with it the oldest
# entries are evicted first.
class SupportCache:
	def __init__(self, maxSize=None):
		if (maxSize is not None and maxSize < 1):
			raise ValueError("the cache size must be positive")
		self.lock = threading.Lock()
		self.maxSize = maxSize
		self.entries = {}

	@staticmethod
	def key(d):
		return tuple(d.tolist())

	# Callers hold the lock.
	def store(self, key, count, partial):
		self.entries.pop(key, None)
		if (self.maxSize is not None and len(self.entries) >= self.maxSize):
			del self.entries[next(iter(self.entries))]
		self.entries[key] = (count, partial)

	def clear(self):
		with self.lock:
			self.entries = {}

	def __len__(self):
		return len(self.entries)

# Minkowski sum of an array of sets with a per-direction cache.
# Operands can be appended but never removed.
class MinkowskiSumArray(LazySet):
	_eqFields = ("sets",)

	def __init__(self, sets, cacheSize=None):
		self.sets = _checkOperands(sets)
		_checkSameDim(self.sets)
		self.exact = commonKind(self.sets)
		self.cache = SupportCache(cacheSize)

	def dim(self):
		return self.sets[0].dim()

	def append(self, S):
		_checkOperands([S])
		_checkSameDim([self.sets[0], S])
		commonKind([self.sets[0], S])
		with self.cache.lock:
			self.sets.append(S)

	def _sigma(self, d):
		key = SupportCache.key(d)
		# Cache population is a write, so queries on the same array are serialized.
		with self.cache.lock:
			count, partial = self.cache.entries.get(key, (0, None))
			for S in self.sets[count:]:
				sv = S._sigma(d)
				partial = sv if partial is None else partial + sv
			self.cache.store(key, len(self.sets), partial)
			return partial.copy()

	def isEmpty(self):
		return any(S.isEmpty() for S in self.sets)

	def __deepcopy__(self, memo):
		return MinkowskiSumArray([copy.deepcopy(S, memo) for S in self.sets], self.cache.maxSize)

# Cartesian product of two sets; the direction is split by block dimensions.
class CartesianProduct(LazySet):
	_eqFields = ("X", "Y")

	def __init__(self, X, Y):
		_checkOperands([X, Y])
		self.exact = commonKind([X, Y])
		self.X = X
		self.Y = Y

	def dim(self):
		return self.X.dim() + self.Y.dim()

	def _sigma(self, d):
		n1 = self.X.dim()
		return np.concatenate((self.X._sigma(d[:n1]), self.Y._sigma(d[n1:])))

	def isEmpty(self):
		return self.X.isEmpty() or self.Y.isEmpty()

class CartesianProductArray(LazySet):
	_eqFields = ("sets",)

	def __init__(self, sets):
		self.sets = _checkOperands(sets)
		self.exact = commonKind(self.sets)

	def dim(self):
		return sum(S.dim() for S in self.sets)

	def _sigma(self, d):
		blocks = []
		start = 0
		for S in self.sets:
			stop = start + S.dim()
			blocks.append(S._sigma(d[start:stop]))
			start = stop
		return np.concatenate(blocks)

	def isEmpty(self):
		return any(S.isEmpty() for S in self.sets)

# Support vector with the largest value of <d, .>; ties go to the earlier operand.
def _argmaxSupport(d, sets):
	best = None
	bestVal = None
	for S in sets:
		sv = S._sigma(d)
		val = dops.dotSafe(d, sv)
		if (bestVal is None or val > bestVal):
			best = sv
			bestVal = val
	return best

# Convex hull of the union of two sets.
class ConvexHull(LazySet):
	_eqFields = ("X", "Y")

	def __init__(self, X, Y):
		_checkOperands([X, Y])
		_checkSameDim([X, Y])
		self.exact = commonKind([X, Y])
		self.X = X
		self.Y = Y

	def dim(self):
		return self.X.dim()

	def _sigma(self, d):
		return _argmaxSupport(d, [self.X, self.Y])

	def isEmpty(self):
		return self.X.isEmpty() and self.Y.isEmpty()

class ConvexHullArray(LazySet):
	_eqFields = ("sets",)

	def __init__(self, sets):
		self.sets = _checkOperands(sets)
		_checkSameDim(self.sets)
		self.exact = commonKind(self.sets)

	def dim(self):
		return self.sets[0].dim()

	def _sigma(self, d):
		return _argmaxSupport(d, self.sets)

	def isEmpty(self):
		return all(S.isEmpty() for S in self.sets)

# Intersection of two sets. The support vector is exact when both operands are
# polyhedral (LP) and found by a line search when one operand is a half-space
# or a hyperplane; other combinations have no closed form. Both searches work
# in floating point.
class Intersection(LazySet):
	_eqFields = ("X", "Y")

	def __init__(self, X, Y):
		_checkOperands([X, Y])
		_checkSameDim([X, Y])
		self.exact = commonKind([X, Y])
		self.X = X
		self.Y = Y

	def dim(self):
		return self.X.dim()

	def isPolyhedral(self):
		return self.X.isPolyhedral() and self.Y.isPolyhedral()

	def constraintsList(self):
		return self.X.constraintsList() + self.Y.constraintsList()

	def _sigma(self, d):
		if self.isPolyhedral():
			return self._sigmaLp(d)
		elif isinstance(self.Y, (HalfSpace, Hyperplane)):
			return self._sigmaLineSearch(d, self.X, self.Y)
		elif isinstance(self.X, (HalfSpace, Hyperplane)):
			return self._sigmaLineSearch(d, self.Y, self.X)

		raise UnsupportedOperationError("no support vector for the intersection of {} and {}"
										.format(type(self.X).__name__, type(self.Y).__name__))

	def _sigmaLp(self, d):
		if self.exact:
			raise NumericTypeMismatchError("the LP backend needs floating-point sets")
		A, b = toSimpleHrep(self)
		status, x = lpb.supportLp(d, A, b)
		if (status == "unbounded"):
			return unboundedVector(d)
		if (status == "infeasible"):
			raise InfeasibleSetError("the intersection is empty")
		return dops.asVector(x, self.exact)

	# rho(d, X & H) = min over lam of rho(d - lam*a, X) + lam*b, where lam >= 0
	# for a half-space and lam is free for a hyperplane.
	def _sigmaLineSearch(self, d, X, H):
		if X.exact:
			raise NumericTypeMismatchError("the line search needs floating-point sets")
		a = np.asarray(H.a, dtype=float)
		b = float(H.b)
		isHyperplane = isinstance(H, Hyperplane)

		# The support vector of X may already satisfy the constraint.
		x0 = X._sigma(d)
		if not hasInfinite(x0) and not isHyperplane and a @ x0 <= b:
			return x0

		def f(lam):
			return dops.dotSafe(d - lam*a, X._sigma(d - lam*a)) + lam*b

		lo, hi = self._bracket(f, isHyperplane)
		res = minimize_scalar(f, bounds=(lo, hi), method="bounded", options={"xatol": 1e-10})
		if not np.isfinite(res.fun):
			return unboundedVector(d)
		lam = res.x
		logger.debug("line search for %s: lam=%g, rho=%g", d, lam, res.fun)

		# Support vectors of X on both sides of the optimal multiplier lie on
		# opposite sides of the hyperplane; the point of their segment on the
		# hyperplane is a support vector of the intersection.
		delta = 1e-6 * max(1.0, abs(lam))
		for _ in range(30):
			x1 = X._sigma(d - (lam - delta)*a)
			x2 = X._sigma(d - (lam + delta)*a)
			h1 = a @ x1 - b
			h2 = a @ x2 - b
			if (h1 >= 0 >= h2):
				break
			delta *= 2
		else:
			logger.warning("no bracketing support vectors around lam=%g", lam)

		if (h1 == h2):
			return x1
		t = min(max(h1 / (h1 - h2), 0.0), 1.0)
		return x1 + t*(x2 - x1)

	# Interval of multipliers containing the minimizer, found by doubling.
	@staticmethod
	def _bracket(f, symmetric, limit=1e12):
		hi = 1.0
		while (hi < limit):
			upOk = f(2*hi) >= f(hi)
			downOk = (not symmetric) or f(-2*hi) >= f(-hi)
			if upOk and downOk:
				break
			hi *= 2

		if (hi >= limit):
			raise InfeasibleSetError("the line search diverged; the intersection is empty")
		return (-2*hi if symmetric else 0.0), 2*hi

# Linear map M*X: sigma(d) = M * sigma(M' d, X).
class LinearMap(LazySet):
	_eqFields = ("M", "X")

	def __init__(self, M, X):
		_checkOperands([X])
		self.exact = X.exact
		if sparse.issparse(M):
			if self.exact:
				raise NumericTypeMismatchError("sparse maps of exact sets are not supported")
			self.M = sparse.csr_matrix(M, dtype=float)
		else:
			self.M = coerce(M, self.exact)
			if (self.M.ndim != 2):
				raise ValueError("the map must be a matrix")
		if (self.M.shape[1] != X.dim()):
			raise DimensionMismatchError(X.dim(), self.M.shape[1])
		self.X = X

	def dim(self):
		return self.M.shape[0]

	def _sigma(self, d):
		inner = self.X._sigma(self.M.T @ d)
		if hasInfinite(inner):
			return unboundedVector(d)
		return self.M @ inner

	def isEmpty(self):
		return self.X.isEmpty()

# Exponential map exp(M)*X: sigma(d) = exp(M) * sigma(exp(M)' d, X).
# With krylov=True only the action of exp(M) on vectors is computed.
class ExponentialMap(LazySet):
	_eqFields = ("M", "X")

	def __init__(self, M, X, krylov=True):
		_checkOperands([X])
		if X.exact:
			raise NumericTypeMismatchError("the exponential map needs floating-point sets")
		self.M = sparse.csc_matrix(M, dtype=float)
		if (self.M.shape != (X.dim(), X.dim())):
			raise DimensionMismatchError(X.dim(), self.M.shape[0])
		self.X = X
		self.krylov = krylov
		self._expM = None

	def dim(self):
		return self.X.dim()

	# Dense exp(M), computed once when the action backend is not used.
	def expMatrix(self):
		if self._expM is None:
			self._expM = expm(self.M.toarray())
		return self._expM

	def _action(self, v, transpose=False):
		if self.krylov:
			M = self.M.T.tocsc() if transpose else self.M
			return expm_multiply(M, v)
		E = self.expMatrix()
		return (E.T if transpose else E) @ v

	def _sigma(self, d):
		inner = self.X._sigma(self._action(d, transpose=True))
		if hasInfinite(inner):
			return unboundedVector(d)
		return self._action(inner)

	def isEmpty(self):
		return self.X.isEmpty()

# Neutral and absorbing elements of the binary operations.
def neutral(opType):
	if opType in (MinkowskiSum, MinkowskiSumArray):
		return ZeroSet
	if opType in (ConvexHull, ConvexHullArray):
		return EmptySet
	raise UnsupportedOperationError("{} has no neutral element".format(opType.__name__))

def absorbing(opType):
	if opType in (MinkowskiSum, MinkowskiSumArray, CartesianProduct, CartesianProductArray,
				  Intersection):
		return EmptySet
	raise UnsupportedOperationError("{} has no absorbing element".format(opType.__name__))

# Function to compute the Minkowski sum of two sets.
def minkowskiSum(X, Y):
	if isinstance(X, EmptySet) or isinstance(Y, EmptySet):
		_checkSameDim([X, Y])
		return EmptySet(X.dim(), commonKind([X, Y]))
	if isinstance(X, ZeroSet):
		_checkSameDim([X, Y])
		return Y
	if isinstance(Y, ZeroSet):
		_checkSameDim([X, Y])
		return X
	return MinkowskiSum(X, Y)

# Function to compute the Cartesian product of two sets.
def cartesianProduct(X, Y):
	if isinstance(X, EmptySet) or isinstance(Y, EmptySet):
		return EmptySet(X.dim() + Y.dim(), commonKind([X, Y]))
	return CartesianProduct(X, Y)

# Function to compute the convex hull of two sets.
def convexHull(X, Y):
	if isinstance(X, EmptySet):
		_checkSameDim([X, Y])
		return Y
	if isinstance(Y, EmptySet):
		_checkSameDim([X, Y])
		return X
	return ConvexHull(X, Y)

# Function to compute the intersection of two sets.
def intersection(X, Y):
	if isinstance(X, EmptySet) or isinstance(Y, EmptySet):
		_checkSameDim([X, Y])
		return EmptySet(X.dim(), commonKind([X, Y]))
	return Intersection(X, Y)

# Function to compute the matrix transformation of a set.
def linearMap(M, X):
	if isinstance(X, EmptySet):
		return EmptySet(np.shape(M)[0], X.exact)
	return LinearMap(M, X)

# Function to compute the matrix exponential transformation of a set.
def exponentialMap(M, X, krylov=True):
	if isinstance(X, EmptySet):
		return X
	return ExponentialMap(M, X, krylov)
