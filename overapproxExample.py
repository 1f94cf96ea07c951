# Code computing certified polygonal overapproximations of a few lazy sets.
# The sets are never converted to polygons before the final step: the
# refinement only queries their support vectors.
import logging
import numpy as np
from fractions import Fraction

import approximationDef as adef
import setOperations as sop
from leafSets import Ball2, BallInf, Zonotope
from overapproximate import approximate, hausdorffEstimate
from setErrors import PrecisionNotAchievedError

logging.basicConfig(level=logging.INFO, format="%(name)s: %(message)s")

# Load the parameters of the approximation here.
params = adef.ApproximationParams()

# Assign the Hausdorff distance tolerance.
params.setTolerance(1e-2)

# Assign the refinement budget.
params.setMaxIterations(2000)

# A rotated Minkowski sum of a disk and a square, and its convex hull with a zonotope.
theta = np.pi/6
M = np.array([[np.cos(theta), -np.sin(theta)],
			  [np.sin(theta),  np.cos(theta)]])
X = sop.linearMap(M, sop.minkowskiSum(Ball2([0.0, 0.0], 1.0), BallInf([0.0, 0.0], 0.5)))
Z = Zonotope([3.0, 0.0], [[1.0, 0.5], [0.0, 1.0]])
sets = dict(rotatedSum=X,
			hull=sop.convexHull(X, Z),
			flowed=sop.exponentialMap(np.array([[0.0, 1.0], [-1.0, 0.0]]), Z),
			exactSquare=BallInf([Fraction(0), Fraction(0)], Fraction(1)))

for name, S in sets.items():
	try:
		Omega = approximate(S, params.eps, params)
	except PrecisionNotAchievedError as e:
		print("{}: precision not achieved, best error {:.3g}".format(name, float(e.bestError)))
		continue

	P = Omega.toHrep()
	print("{}: {} constraints, {} refinements, certified error {:.3g}".format(
		name, len(P.constraints), Omega.iterations, float(Omega.bestError())))

	if not S.exact:
		print("    sampled Hausdorff distance {:.3g}".format(hausdorffEstimate(P, S)))
