# Certified polygonal overapproximation of two-dimensional convex sets.
import logging
from fractions import Fraction
import numpy as np

import directionOps as dops
from approximationDef import ApproximationParams
from hPolygon import HPolygon, isRedundant, scaledOffset
from lazySet import supportVector, supportFunction, boxBounds
from leafSets import BallInf, Hyperrectangle, HalfSpace, HPolytope, hasInfinite
from localApproximation import newApproximation, refine, constraint
from setErrors import DimensionMismatchError, PrecisionNotAchievedError, UnboundedDirectionError

logger = logging.getLogger(__name__)

class PolygonalOverapproximation:
	def __init__(self, S, params=None):
		self.S = S
		self.params = params if params is not None else ApproximationParams()
		self.exact = S.exact
		self.tol = self.params.degeneracyTolerance(self.exact)

		# Pending approximations; the top of the stack is the next one in angular order.
		self.approxStack = []
		# Finalized constraints, sorted by the angle of their normals.
		self.constraints = []
		self.acceptedError = Fraction(0) if self.exact else 0.0
		self.iterations = 0

	def addApproximation(self, p1, d1, p2, d2):
		approx = newApproximation(self.S, p1, d1, p2, d2, self.tol)
		self.approxStack.append(approx)
		return approx

	def pending(self):
		return len(self.approxStack)

	# Largest certified error over the accepted and the pending approximations.
	def bestError(self):
		errors = [a.err for a in self.approxStack]
		return max([self.acceptedError] + errors)

	# Two constraints are redundant if their unit normals agree within redundancyTol.
	def _isDuplicate(self, c1, c2):
		return dops.sameDirection(c1.a, c2.a, self.params.redundancyTolerance(self.exact))

	# Append a constraint, merging it with the last one when their normals
	# coincide and dropping the finalized constraints it makes redundant.
	def _pushConstraint(self, c):
		if self.constraints and self._isDuplicate(self.constraints[-1], c):
			last = self.constraints[-1]
			if (c.b < scaledOffset(last, c)):
				self.constraints[-1] = c
			logger.debug("merged duplicate constraint with normal %s", c.a)
			return

		while (len(self.constraints) >= 2 and
			   isRedundant(self.constraints[-1], self.constraints[-2], c)):
			logger.debug("dropped redundant constraint %s", self.constraints[-1])
			self.constraints.pop()
		self.constraints.append(c)

	# Redundancy across the wrap-around from the last constraint to the first.
	def _closeRing(self):
		cs = self.constraints
		if (len(cs) > 1 and self._isDuplicate(cs[-1], cs[0])):
			last = cs.pop()
			if (last.b < scaledOffset(cs[0], last)):
				cs[0] = last

		changed = True
		while (changed and len(cs) > 3):
			changed = False
			if isRedundant(cs[-1], cs[-2], cs[0]):
				cs.pop()
				changed = True
			elif isRedundant(cs[0], cs[-1], cs[1]):
				cs.pop(0)
				changed = True

	# Accept an approximation and emit its outer constraint.
	def finalize(self, approx):
		self.acceptedError = max(self.acceptedError, approx.err)
		self._pushConstraint(constraint(approx))

	# Replace the top approximation by its two refinements, keeping the angular order.
	def refineTop(self):
		approx = self.approxStack.pop()
		right, left = refine(approx, self.S, self.tol)
		self.approxStack.append(left)
		self.approxStack.append(right)
		self.iterations += 1
		logger.debug("refined approximation with error %g into errors %g and %g",
					 float(approx.err), float(right.err), float(left.err))

	# Finalize all pending approximations and return the polygon.
	def toHrep(self):
		while self.approxStack:
			self.finalize(self.approxStack.pop())
		self._closeRing()

		return HPolygon(self.constraints, sortConstraints=False, exact=self.exact,
						linearSearchThreshold=self.params.linearSearchThreshold,
						redundancyTol=self.params.redundancyTolerance(self.exact))

# Support vectors of S along the four axis directions; an infinite entry means S is unbounded.
def _axisSupport(S):
	points = []
	directions = []
	for i, sign in [(0, 1), (1, 1), (0, -1), (1, -1)]:
		d = dops.unitVector(i, 2, sign, S.exact)
		p = supportVector(d, S)
		if hasInfinite(p):
			raise UnboundedDirectionError(d)
		points.append(p)
		directions.append(d)
	return points, directions

# Compute a polygonal overapproximation of the 2D set S within Hausdorff distance eps.
# The tolerance must be positive: smooth sets are never matched exactly.
def approximate(S, eps=None, params=None):
	if (S.dim() != 2):
		raise DimensionMismatchError(2, S.dim())
	if params is None:
		params = ApproximationParams()
	if eps is None:
		eps = params.eps
	if not (eps > 0):
		raise ValueError("the tolerance must be positive, got {}".format(eps))

	(pe, pn, pw, ps), (east, north, west, south) = _axisSupport(S)

	Omega = PolygonalOverapproximation(S, params)

	# Push in reverse so that the east-north piece is processed first.
	Omega.addApproximation(ps, south, pe, east)
	Omega.addApproximation(pw, west, ps, south)
	Omega.addApproximation(pn, north, pw, west)
	Omega.addApproximation(pe, east, pn, north)

	while Omega.approxStack:
		approx = Omega.approxStack[-1]
		if (approx.err <= eps or not approx.refinable):
			Omega.finalize(Omega.approxStack.pop())
			continue

		if (Omega.iterations >= params.maxIterations):
			bestError = Omega.bestError()
			logger.warning("stopping after %d refinements with error %g > %g",
						   Omega.iterations, float(bestError), eps)
			raise PrecisionNotAchievedError(bestError, Omega.toHrep(), Omega.iterations)

		Omega.refineTop()

	logger.info("approximated %s with %d constraints after %d refinements",
				type(S).__name__, len(Omega.constraints), Omega.iterations)
	return Omega

# Return an HPolygon that contains S and is within Hausdorff distance eps of it.
def overapproximate(S, eps=None, params=None):
	return approximate(S, eps, params).toHrep()

# Smallest axis-aligned box containing S (any dimension).
def boxApproximation(S):
	lo, hi = boxBounds(S)
	if hasInfinite(lo) or hasInfinite(hi):
		raise UnboundedDirectionError(hi - lo, "the set has no bounding box")
	return Hyperrectangle((hi + lo) / 2, (hi - lo) / 2)

overapproximateBox = boxApproximation

# Ball in the infinity norm with the center of the bounding box.
def ballinfApproximation(S):
	H = boxApproximation(S)
	return BallInf(H.center, np.max(H.radius))

# Template overapproximation with one constraint <d_i, x> <= rho(d_i, S) per direction.
def overapproximateDirections(S, directions, params=None):
	if params is None:
		params = ApproximationParams()
	constraints = []
	for d in directions:
		d = dops.asVector(d, S.exact)
		r = supportFunction(d, S)
		if (r == float('inf')):
			raise UnboundedDirectionError(d)
		constraints.append(HalfSpace(d, r))

	if (S.dim() == 2):
		return HPolygon(constraints, linearSearchThreshold=params.linearSearchThreshold,
						redundancyTol=params.redundancyTolerance(S.exact))
	A = np.vstack([np.asarray(c.a, dtype=float) for c in constraints])
	b = np.array([float(c.b) for c in constraints])
	return HPolytope(A, b)

# Estimate the one-sided Hausdorff distance max_d rho(d, P) - rho(d, S) for S inside P,
# sampling unit directions uniformly on the circle.
def hausdorffEstimate(P, S, nDirections=360):
	if (P.dim() != 2):
		raise DimensionMismatchError(2, P.dim())
	if (S.dim() != 2):
		raise DimensionMismatchError(2, S.dim())
	worst = 0.0
	for theta in np.linspace(0.0, 2*np.pi, nDirections, endpoint=False):
		d = np.array([np.cos(theta), np.sin(theta)])
		diff = float(supportFunction(dops.asVector(d, P.exact), P)) - \
			   float(supportFunction(dops.asVector(d, S.exact), S))
		worst = max(worst, diff)
	return worst
