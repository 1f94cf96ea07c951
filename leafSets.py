# Concrete convex sets with closed-form support vectors.
import itertools
from fractions import Fraction
import numpy as np
from pytope import Polytope

import directionOps as dops
import lpBackend as lpb
from lazySet import LazySet, coerce
from setErrors import InfeasibleSetError, NumericTypeMismatchError

# Componentwise sign of d where zero counts as positive.
def signPlus(d):
	if dops.isExact(d):
		return np.array([Fraction(1) if di >= 0 else Fraction(-1) for di in d], dtype=object)
	return np.where(d >= 0, 1.0, -1.0)

# Witness of unboundedness: infinite in every component where d is nonzero.
def unboundedVector(d):
	inf = float('inf')
	v = [0 if di == 0 else (inf if di > 0 else -inf) for di in d]
	return np.array(v, dtype=object if dops.isExact(d) else float)

def hasInfinite(x):
	return any(abs(xi) == float('inf') for xi in x)

def _exactOf(x, exact):
	if exact is not None:
		return exact
	return np.asarray(x).dtype == object

def _scalar(r, exact):
	if exact:
		return Fraction(r)
	if isinstance(r, Fraction):
		raise NumericTypeMismatchError("exact radius for a float set")
	return float(r)

def _requireFloat(exact, name):
	if exact:
		raise NumericTypeMismatchError("{} is only defined for floating-point numbers".format(name))

# Set with a single element.
class Singleton(LazySet):
	_eqFields = ("element",)

	def __init__(self, element, exact=None):
		self.element = dops.asVector(element, exact)
		self.exact = dops.isExact(self.element)

	def dim(self):
		return self.element.size

	def _sigma(self, d):
		return self.element.copy()

	def anElement(self):
		return self.element.copy()

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		return BallInf(self.element, 0).constraintsList()

	def contains(self, x):
		return bool(np.all(coerce(x, self.exact) == self.element))

	def verticesList(self):
		return [self.element.copy()]

# The singleton containing the origin. Neutral element of the Minkowski sum.
class ZeroSet(LazySet):
	_eqFields = ("n",)

	def __init__(self, n, exact=False):
		self.n = int(n)
		self.exact = bool(exact)

	def dim(self):
		return self.n

	def _sigma(self, d):
		return dops.asVector(np.zeros(self.n, dtype=int), self.exact)

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		return Singleton(self._sigma(None)).constraintsList()

	def contains(self, x):
		return bool(np.all(coerce(x, self.exact) == 0))

# The empty set. Absorbing element of the Minkowski sum and the intersection.
class EmptySet(LazySet):
	_eqFields = ("n",)

	def __init__(self, n, exact=False):
		self.n = int(n)
		self.exact = bool(exact)

	def dim(self):
		return self.n

	def _sigma(self, d):
		raise InfeasibleSetError("the empty set has no support vector")

	def anElement(self):
		raise InfeasibleSetError("the empty set has no element")

	def isEmpty(self):
		return True

	def isBounded(self):
		return True

	def contains(self, x):
		return False

# Common functionality of axis-aligned boxes.
class AbstractHyperrectangle(LazySet):
	def radiusVector(self):
		raise NotImplementedError

	def dim(self):
		return self.center.size

	def _sigma(self, d):
		return self.center + self.radiusVector() * signPlus(d)

	def anElement(self):
		return self.center.copy()

	def high(self):
		return self.center + self.radiusVector()

	def low(self):
		return self.center - self.radiusVector()

	def contains(self, x):
		x = coerce(x, self.exact)
		return bool(np.all(np.abs(x - self.center) <= self.radiusVector()))

	# Vertices without repetitions in flat dimensions.
	def verticesList(self):
		r = self.radiusVector()
		options = [[self.center[i]] if r[i] == 0 else [self.center[i] + r[i], self.center[i] - r[i]]
				   for i in range(self.dim())]
		return [np.array(v, dtype=self.center.dtype) for v in itertools.product(*options)]

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		n = self.dim()
		hi = self.high()
		lo = self.low()
		constraints = []
		for i in range(n):
			constraints.append(HalfSpace(dops.unitVector(i, n, 1, self.exact), hi[i]))
			constraints.append(HalfSpace(dops.unitVector(i, n, -1, self.exact), -lo[i]))
		return constraints

# Ball in the infinity norm.
class BallInf(AbstractHyperrectangle):
	_eqFields = ("center", "radius")

	def __init__(self, center, radius, exact=None):
		exact = _exactOf(center, exact) or isinstance(radius, Fraction)
		self.center = dops.asVector(center, exact)
		self.exact = dops.isExact(self.center)
		self.radius = _scalar(radius, self.exact)
		if (self.radius < 0):
			raise ValueError("the radius must be non-negative, got {}".format(radius))

	def radiusVector(self):
		return dops.asVector([self.radius]*self.dim(), self.exact)

# Axis-aligned box with per-dimension radii.
class Hyperrectangle(AbstractHyperrectangle):
	_eqFields = ("center", "radius")

	def __init__(self, center, radius, exact=None):
		exact = _exactOf(center, exact) or _exactOf(radius, None)
		self.center = dops.asVector(center, exact)
		self.radius = dops.asVector(radius, exact)
		self.exact = dops.isExact(self.center)
		if (self.center.size != self.radius.size):
			raise ValueError("center and radius must have the same length")
		if np.any(self.radius < 0):
			raise ValueError("the radius must be non-negative")

	def radiusVector(self):
		return self.radius

# Ball in the 1-norm.
class Ball1(LazySet):
	_eqFields = ("center", "radius")

	def __init__(self, center, radius, exact=None):
		exact = _exactOf(center, exact) or isinstance(radius, Fraction)
		self.center = dops.asVector(center, exact)
		self.exact = dops.isExact(self.center)
		self.radius = _scalar(radius, self.exact)
		if (self.radius < 0):
			raise ValueError("the radius must be non-negative, got {}".format(radius))

	def dim(self):
		return self.center.size

	# The vertex along the largest component of d.
	def _sigma(self, d):
		x = self.center.copy()
		i = int(np.argmax(np.array([abs(di) for di in d], dtype=float)))
		x[i] = x[i] + (self.radius if d[i] >= 0 else -self.radius)
		return x

	def anElement(self):
		return self.center.copy()

	def contains(self, x):
		x = coerce(x, self.exact)
		return np.sum(np.abs(x - self.center)) <= self.radius

# Ball in the Euclidean norm.
class Ball2(LazySet):
	_eqFields = ("center", "radius")

	def __init__(self, center, radius):
		self.center = dops.asVector(center)
		_requireFloat(dops.isExact(self.center), "Ball2")
		self.radius = _scalar(radius, False)
		if (self.radius < 0):
			raise ValueError("the radius must be non-negative, got {}".format(radius))

	def dim(self):
		return self.center.size

	def _sigma(self, d):
		dNorm = np.linalg.norm(d)
		if (dNorm == 0):
			return self.center.copy()
		return self.center + self.radius * d / dNorm

	def anElement(self):
		return self.center.copy()

	def contains(self, x, tol=1e-12):
		x = coerce(x, False)
		return np.linalg.norm(x - self.center) <= self.radius + tol

# Ellipsoid {x : (x-c)' Q^-1 (x-c) <= 1} for a positive definite shape matrix Q.
class Ellipsoid(LazySet):
	_eqFields = ("center", "shapeMatrix")

	def __init__(self, center, shapeMatrix):
		self.center = dops.asVector(center)
		_requireFloat(dops.isExact(self.center), "Ellipsoid")
		self.shapeMatrix = dops.asArray(shapeMatrix, False)
		n = self.center.size
		if (self.shapeMatrix.shape != (n, n)):
			raise ValueError("the shape matrix must be {0}x{0}".format(n))

	def dim(self):
		return self.center.size

	def _sigma(self, d):
		Qd = self.shapeMatrix @ d
		scale = np.sqrt(d @ Qd)
		if (scale == 0):
			return self.center.copy()
		return self.center + Qd / scale

	def anElement(self):
		return self.center.copy()

	def contains(self, x, tol=1e-12):
		x = coerce(x, False) - self.center
		return x @ np.linalg.solve(self.shapeMatrix, x) <= 1 + tol

# Zonotope c + G*[-1, 1]^p with generators as the columns of G.
class Zonotope(LazySet):
	_eqFields = ("center", "generators")

	def __init__(self, center, generators, exact=None):
		exact = _exactOf(center, exact) or _exactOf(generators, None)
		self.center = dops.asVector(center, exact)
		self.exact = dops.isExact(self.center)
		self.generators = dops.asArray(generators, self.exact)
		if (self.generators.ndim == 1):
			self.generators = self.generators.reshape(-1, 1)
		if (self.generators.shape[0] != self.center.size):
			raise ValueError("the generators must have {} rows".format(self.center.size))

	def dim(self):
		return self.center.size

	def _sigma(self, d):
		return self.center + self.generators @ signPlus(self.generators.T @ d)

	def anElement(self):
		return self.center.copy()

	def order(self):
		return self.generators.shape[1] / self.dim()

# Polytope in vertex representation.
class VPolytope(LazySet):
	_eqFields = ("vertices",)

	def __init__(self, vertices, exact=None):
		self.vertices = dops.asArray(vertices, exact)
		if (self.vertices.ndim != 2 or self.vertices.shape[0] == 0):
			raise ValueError("a VPolytope needs a non-empty (m, n) array of vertices")
		self.exact = dops.isExact(self.vertices)

	@classmethod
	def fromPytope(cls, P):
		return cls(np.asarray(P.V, dtype=float))

	def toPytope(self):
		return Polytope(np.asarray(self.vertices, dtype=float))

	def dim(self):
		return self.vertices.shape[1]

	# Vertex maximizing <d, v>; ties go to the first such vertex.
	def _sigma(self, d):
		maxVal = None
		best = 0
		for i in range(self.vertices.shape[0]):
			val = self.vertices[i, :] @ d
			if (maxVal is None or val > maxVal):
				maxVal = val
				best = i
		return self.vertices[best, :].copy()

	def anElement(self):
		return self.vertices[0, :].copy()

	def verticesList(self):
		return [v.copy() for v in self.vertices]

# Polyhedron {x : A x <= b}, queried through the LP backend.
class HPolytope(LazySet):
	_eqFields = ("A", "b")

	def __init__(self, A, b):
		self.A = dops.asArray(A, False)
		self.b = dops.asVector(b, False)
		if (self.A.ndim != 2 or self.A.shape[0] != self.b.size):
			raise ValueError("A must be a matrix with one row per entry of b")
		self.exact = False

	@classmethod
	def fromPytope(cls, P):
		return cls(np.asarray(P.A, dtype=float), np.asarray(P.b, dtype=float).ravel())

	def dim(self):
		return self.A.shape[1]

	def _sigma(self, d):
		status, x = lpb.supportLp(d, self.A, self.b)
		if (status == "optimal"):
			return x
		if (status == "unbounded"):
			return unboundedVector(d)
		raise InfeasibleSetError("the constraints of the polytope are infeasible")

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		return [HalfSpace(self.A[i, :], self.b[i]) for i in range(self.b.size)]

	def contains(self, x, tol=1e-12):
		x = coerce(x, False)
		return bool(np.all(self.A @ x <= self.b + tol))

# Positive factor lam with d = lam*a, or None if d is not along a.
def _alongFactor(d, a, allowNegative):
	lam = np.dot(d, a) / np.dot(a, a)
	if (lam == 0 or (lam < 0 and not allowNegative)):
		return None
	tol = 0 if dops.isExact(d) else 1e-12
	if dops.isApprox(d, lam * a, tol):
		return lam
	return None

# Half-space {x : <a, x> <= b}.
class HalfSpace(LazySet):
	_eqFields = ("a", "b")

	def __init__(self, a, b, exact=None):
		exact = _exactOf(a, exact) or isinstance(b, Fraction)
		self.a = dops.asVector(a, exact)
		self.exact = dops.isExact(self.a)
		self.b = _scalar(b, self.exact)
		if np.all(self.a == 0):
			raise ValueError("the normal vector of a half-space must be nonzero")

	def dim(self):
		return self.a.size

	# The point of the boundary closest to the origin.
	def boundaryPoint(self):
		return self.a * (self.b / np.dot(self.a, self.a))

	def _sigma(self, d):
		if np.all(d == 0) or _alongFactor(d, self.a, False) is not None:
			return self.boundaryPoint()
		return unboundedVector(d)

	def anElement(self):
		return self.boundaryPoint()

	def isBounded(self):
		return False

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		return [self]

	def contains(self, x):
		return np.dot(self.a, coerce(x, self.exact)) <= self.b

	# Normalized copy with a unit normal (float only).
	def normalize(self):
		_requireFloat(self.exact, "normalize")
		aNorm = np.linalg.norm(self.a)
		return HalfSpace(self.a / aNorm, self.b / aNorm)

# Hyperplane {x : <a, x> = b}.
class Hyperplane(LazySet):
	_eqFields = ("a", "b")

	def __init__(self, a, b, exact=None):
		exact = _exactOf(a, exact) or isinstance(b, Fraction)
		self.a = dops.asVector(a, exact)
		self.exact = dops.isExact(self.a)
		self.b = _scalar(b, self.exact)
		if np.all(self.a == 0):
			raise ValueError("the normal vector of a hyperplane must be nonzero")

	def dim(self):
		return self.a.size

	def boundaryPoint(self):
		return self.a * (self.b / np.dot(self.a, self.a))

	def _sigma(self, d):
		if np.all(d == 0) or _alongFactor(d, self.a, True) is not None:
			return self.boundaryPoint()
		return unboundedVector(d)

	def anElement(self):
		return self.boundaryPoint()

	def isBounded(self):
		return False

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		return [HalfSpace(self.a, self.b), HalfSpace(-self.a, -self.b)]

	def contains(self, x):
		return np.dot(self.a, coerce(x, self.exact)) == self.b
