# Polygons in constraint representation, with the constraints sorted by the
# polar angle of their normal vectors.
import logging
import numpy as np
import polytope as pc

import directionOps as dops
from lazySet import LazySet, coerce
from leafSets import HalfSpace, VPolytope, unboundedVector
from setErrors import DimensionMismatchError, NumericTypeMismatchError, UnboundedDirectionError

logger = logging.getLogger(__name__)

# Intersection of the lines <a1, x> = b1 and <a2, x> = b2, or None if they are parallel.
def lineIntersection(a1, b1, a2, b2):
	det = a1[0]*a2[1] - a1[1]*a2[0]
	if (det == 0):
		return None
	x = (b1*a2[1] - a1[1]*b2) / det
	y = (a1[0]*b2 - b1*a2[0]) / det
	return np.array([x, y], dtype=np.result_type(np.asarray(a1), np.asarray(a2)))

# Offset of c rescaled to the normal of ref, assuming both normals point the same way.
def scaledOffset(c, ref):
	i = 0 if c.a[0] != 0 else 1
	return c.b * (ref.a[i] / c.a[i])

# Whether cMid is redundant given its angular neighbours cRight (smaller angle)
# and cLeft (larger angle).
def isRedundant(cMid, cRight, cLeft):
	# If the neighbours span an angle of pi or more, cMid bounds the polygon.
	if (dops.cross2(cRight.a, cLeft.a) <= 0):
		return False
	x = lineIntersection(cRight.a, cRight.b, cLeft.a, cLeft.b)
	return np.dot(cMid.a, x) <= cMid.b

class HPolygon(LazySet):
	_eqFields = ("constraints",)

	def __init__(self, constraints=(), sortConstraints=True, checkBoundedness=False,
				 exact=None, linearSearchThreshold=10, redundancyTol=0):
		constraints = list(constraints)
		if exact is None:
			exact = bool(constraints) and constraints[0].exact
		self.exact = bool(exact)
		self.linearSearchThreshold = linearSearchThreshold
		# Normals whose directions differ by at most this are merged.
		self.redundancyTol = 0 if self.exact else redundancyTol
		self.constraints = []

		for c in constraints:
			if (c.dim() != 2):
				raise DimensionMismatchError(2, c.dim())
			if (c.exact != self.exact):
				raise NumericTypeMismatchError("all constraints must have the same number type")

		if sortConstraints:
			for c in constraints:
				self.addConstraint(c, prune=False)
		else:
			self.constraints = constraints

		if checkBoundedness and not self.isBounded():
			raise UnboundedDirectionError(np.zeros(2), "the constraints do not define a bounded polygon")

	def dim(self):
		return 2

	def isPolyhedral(self):
		return True

	def constraintsList(self):
		return list(self.constraints)

	# A polygon is bounded iff cyclically consecutive normals span less than pi.
	def isBounded(self):
		m = len(self.constraints)
		if (m < 3):
			return False
		for k in range(m):
			if (dops.cross2(self.constraints[k].a, self.constraints[(k+1) % m].a) <= 0):
				return False
		return True

	# First index whose normal has a strictly larger angle than d (m if none).
	def _upperIndex(self, d):
		m = len(self.constraints)
		if (m < self.linearSearchThreshold):
			for k in range(m):
				if dops.angleLt(d, self.constraints[k].a):
					return k
			return m

		lo = 0
		hi = m
		while (lo < hi):
			mid = (lo + hi) // 2
			if dops.angleLt(d, self.constraints[mid].a):
				hi = mid
			else:
				lo = mid + 1
		return lo

	# Insert a constraint keeping the angular order. A constraint with the
	# same normal direction as a stored one (within redundancyTol) only keeps
	# the tighter offset.
	def addConstraint(self, c, prune=True):
		if (c.exact != self.exact):
			raise NumericTypeMismatchError("all constraints must have the same number type")
		m = len(self.constraints)
		if (m == 0):
			self.constraints.append(c)
			return

		k = self._upperIndex(c.a)
		neighbours = ([k-1] if k > 0 else []) + ([k] if k < m else [])
		for j in neighbours:
			old = self.constraints[j]
			if dops.sameDirection(old.a, c.a, self.redundancyTol):
				if (c.b < scaledOffset(old, c)):
					self.constraints[j] = c
					if prune:
						self._pruneAround(j)
				return

		self.constraints.insert(k, c)
		if prune:
			self._pruneAround(k)

	def _redundantAt(self, i):
		m = len(self.constraints)
		return isRedundant(self.constraints[i % m], self.constraints[(i-1) % m],
						   self.constraints[(i+1) % m])

	def _indexOf(self, c):
		return next(i for i, x in enumerate(self.constraints) if x is c)

	# Remove the constraints made redundant by the one inserted at index k.
	def _pruneAround(self, k):
		if (len(self.constraints) < 4):
			return

		c = self.constraints[k]
		if self._redundantAt(k):
			del self.constraints[k]
			return

		for step in (1, -1):
			while (len(self.constraints) > 3):
				m = len(self.constraints)
				j = (self._indexOf(c) + step) % m
				if not self._redundantAt(j):
					break
				logger.debug("removing redundant constraint %s", self.constraints[j])
				del self.constraints[j]

	# Vertex between the constraints k-1 and k (cyclic).
	def _vertexAt(self, k):
		m = len(self.constraints)
		c1 = self.constraints[(k-1) % m]
		c2 = self.constraints[k % m]
		return lineIntersection(c1.a, c1.b, c2.a, c2.b)

	# Consecutive constraints k-1 and k meet at a vertex of the polygon only if
	# their normals span less than pi.
	def _isVertex(self, k):
		m = len(self.constraints)
		return (m > 1 and dops.cross2(self.constraints[(k-1) % m].a, self.constraints[k % m].a) > 0)

	def _sigma(self, d):
		m = len(self.constraints)
		if (m == 0):
			return unboundedVector(d)
		if np.all(d == 0):
			return self.anElement()

		k = self._upperIndex(d) % m
		if self._isVertex(k):
			return self._vertexAt(k)

		# The polygon is unbounded past constraint k-1, unless d is its normal:
		# then the other end of that edge supports it, or any point of its line.
		right = self.constraints[(k-1) % m]
		if dops.sameDirection(right.a, d):
			if self._isVertex(k-1):
				return self._vertexAt(k-1)
			return right.boundaryPoint()
		return unboundedVector(d)

	def anElement(self):
		for k in range(len(self.constraints)):
			if self._isVertex(k):
				return self._vertexAt(k)

		# Without vertices any boundary point is an element.
		if self.constraints:
			return self.constraints[0].boundaryPoint()
		return dops.asVector([0, 0], self.exact)

	# Vertices in counter-clockwise order, without repetitions.
	def verticesList(self):
		vertices = []
		for k in range(1, len(self.constraints) + 1):
			if not self._isVertex(k):
				continue
			v = self._vertexAt(k)
			if vertices and np.all(vertices[-1] == v):
				continue
			vertices.append(v)
		if (len(vertices) > 1 and np.all(vertices[0] == vertices[-1])):
			vertices.pop()
		return vertices

	def toVPolytope(self):
		return VPolytope(np.array(self.verticesList()), exact=self.exact)

	def contains(self, x, tol=0):
		x = coerce(x, self.exact)
		return all(np.dot(c.a, x) <= c.b + tol for c in self.constraints)

	# Export to a polytope.Polytope (float).
	def toPolytope(self):
		A = np.array([np.asarray(c.a, dtype=float) for c in self.constraints])
		b = np.array([float(c.b) for c in self.constraints])
		return pc.Polytope(A, b)
