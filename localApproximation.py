# Local approximations: the certified pieces of a 2D polygonal overapproximation.
#
# A piece is bounded by the chord between two points p1, p2 of the set and by
# the support lines through them (normals d1, d2), which meet at q. The set
# lies inside both support lines and contains the chord, so the triangle
# (p1, q, p2) holds all of the slack of this piece.
from fractions import Fraction
import numpy as np

import directionOps as dops
from lazySet import supportVector
from leafSets import HalfSpace, hasInfinite
from hPolygon import lineIntersection
from setErrors import DegenerateApproximation, UnboundedDirectionError

class LocalApproximation:
	def __init__(self, p1, d1, p2, d2, q, refinable, err):
		self.p1 = p1
		self.d1 = d1
		self.p2 = p2
		self.d2 = d2
		self.q = q
		self.refinable = refinable
		self.err = err

	def __repr__(self):
		return ("LocalApproximation(p1={}, d1={}, p2={}, d2={}, q={}, refinable={}, err={})"
				.format(self.p1, self.d1, self.p2, self.d2, self.q, self.refinable, self.err))

# Outward normal of the chord from p1 to p2, for points in counter-clockwise order.
def chordNormal(p1, p2):
	return np.array([p2[1] - p1[1], p1[0] - p2[0]], dtype=p1.dtype)

# Distance |num| / ||n|| with normSq = ||n||^2. Exact sets get a rational upper
# bound, so that the certified error stays in their number type.
def _distance(num, normSq, exact):
	if exact:
		return dops.sqrtUpper(Fraction(num)**2 / normSq)
	return abs(float(num)) / float(np.sqrt(float(normSq)))

# Create the local approximation between (p1, d1) and (p2, d2).
def newApproximation(S, p1, d1, p2, d2, tol):
	exact = dops.isExact(p1)
	if dops.isApprox(p1, p2, tol):
		# Nothing left between the two points; q = p1 by convention.
		return LocalApproximation(p1, d1, p2, d2, p1, False, _distance(0, 1, exact))

	ndir = chordNormal(p1, p2)
	q = lineIntersection(d1, np.dot(d1, p1), d2, np.dot(d2, p2))
	if q is None:
		# Parallel support lines: the error is the distance between them.
		err = _distance(np.dot(d1, p2 - p1), np.dot(d1, d1), exact)
		return LocalApproximation(p1, d1, p2, d2, p1, False, err)

	refinable = not (dops.isApprox(p1, q, tol) or dops.isApprox(p2, q, tol))
	err = _distance(max(np.dot(q - p1, ndir), 0), np.dot(ndir, ndir), exact)
	return LocalApproximation(p1, d1, p2, d2, q, refinable, err)

# Split an approximation at the support vector of S normal to its chord.
# Returns the right (clockwise) and the left (counter-clockwise) pieces.
def refine(approx, S, tol):
	if not approx.refinable:
		raise DegenerateApproximation("the local approximation {} cannot be refined".format(approx))

	ndir = chordNormal(approx.p1, approx.p2)
	if not dops.isExact(ndir):
		ndir = ndir / np.linalg.norm(ndir)

	s = supportVector(ndir, S)
	if hasInfinite(s):
		raise UnboundedDirectionError(ndir)

	right = newApproximation(S, approx.p1, approx.d1, s, ndir, tol)
	left = newApproximation(S, s, ndir, approx.p2, approx.d2, tol)
	return right, left

# Outer constraint contributed by a finished approximation: the support line through p1.
def constraint(approx):
	return HalfSpace(approx.d1, np.dot(approx.d1, approx.p1))
