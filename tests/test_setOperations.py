import copy
import unittest
from fractions import Fraction

import numpy as np
from scipy.linalg import expm

import setOperations as sop
from lazySet import supportVector, supportFunction
from leafSets import (Ball1, Ball2, BallInf, EmptySet, HalfSpace, Hyperplane, Singleton,
					  ZeroSet, Zonotope)
from setErrors import (DimensionMismatchError, NumericTypeMismatchError,
					   UnsupportedOperationError)


def randomDirections(n, count, seed):
	return np.random.default_rng(seed).normal(size=(count, n))


class MinkowskiSumTests(unittest.TestCase):
	def test_composition_rule(self):
		X = Ball2([1.0, 0.0], 1.0)
		Y = Zonotope([0.0, 1.0], [[1.0, 0.0], [0.5, 2.0]])
		S = sop.MinkowskiSum(X, Y)
		for d in randomDirections(2, 30, 5):
			np.testing.assert_allclose(supportVector(d, S),
									   supportVector(d, X) + supportVector(d, Y))

	def test_operator_sugar(self):
		X = BallInf([0.0, 0.0], 1.0)
		Y = Ball1([0.0, 0.0], 1.0)
		self.assertIsInstance(X + Y, sop.MinkowskiSum)
		self.assertIsInstance(X * Y, sop.CartesianProduct)
		self.assertIsInstance(np.eye(2) @ X, sop.LinearMap)
		self.assertEqual(X + Y, sop.MinkowskiSum(X, Y))

	def test_dimension_and_number_type_checks(self):
		with self.assertRaises(DimensionMismatchError):
			sop.MinkowskiSum(Ball2([0.0, 0.0], 1.0), BallInf([0.0, 0.0, 0.0], 1.0))
		with self.assertRaises(NumericTypeMismatchError):
			sop.MinkowskiSum(BallInf([Fraction(0), Fraction(0)], Fraction(1)),
							 BallInf([0.0, 0.0], 1.0))

	def test_shared_operands(self):
		Z = Zonotope([0.0, 0.0], [[1.0], [1.0]])
		S = sop.MinkowskiSum(sop.MinkowskiSum(Z, Z), sop.LinearMap(2*np.eye(2), Z))
		np.testing.assert_allclose(supportVector([1.0, 0.0], S), [4.0, 4.0])


class MinkowskiSumArrayTests(unittest.TestCase):
	def test_cache_is_extended_by_new_operands(self):
		A = sop.MinkowskiSumArray([BallInf([0.0, 0.0], 1.0), Ball2([0.0, 0.0], 1.0)])
		d = np.array([1.0, 0.0])
		np.testing.assert_allclose(supportVector(d, A), [2.0, 1.0])
		self.assertEqual(len(A.cache), 1)

		A.append(Singleton([10.0, 0.0]))
		np.testing.assert_allclose(supportVector(d, A), [12.0, 1.0])
		self.assertEqual(len(A.cache), 1)

		supportVector([0.0, 1.0], A)
		self.assertEqual(len(A.cache), 2)
		A.cache.clear()
		self.assertEqual(len(A.cache), 0)

	def test_bounded_cache_evicts_the_oldest_direction(self):
		A = sop.MinkowskiSumArray([BallInf([0.0, 0.0], 1.0)], cacheSize=2)
		for d in ([1.0, 0.0], [0.0, 1.0], [-1.0, 0.0]):
			supportVector(d, A)
		self.assertEqual(len(A.cache), 2)
		self.assertNotIn((1.0, 0.0), A.cache.entries)
		np.testing.assert_allclose(supportVector([1.0, 0.0], A), [1.0, 1.0])
		self.assertEqual(len(A.cache), 2)
		with self.assertRaises(ValueError):
			sop.MinkowskiSumArray([BallInf([0.0, 0.0], 1.0)], cacheSize=0)

	def test_returned_vectors_do_not_alias_the_cache(self):
		A = sop.MinkowskiSumArray([BallInf([0.0, 0.0], 1.0)])
		v = supportVector([1.0, 1.0], A)
		v[0] = 100.0
		np.testing.assert_allclose(supportVector([1.0, 1.0], A), [1.0, 1.0])

	def test_deep_copy(self):
		A = sop.MinkowskiSumArray([BallInf([0.0, 0.0], 1.0)])
		B = copy.deepcopy(A)
		self.assertEqual(A, B)
		self.assertIsNot(A.sets[0], B.sets[0])


class CartesianProductTests(unittest.TestCase):
	def test_blocks(self):
		X = BallInf([0.0], 1.0)
		Y = Ball2([0.0, 0.0], 2.0)
		S = sop.CartesianProduct(X, Y)
		self.assertEqual(S.dim(), 3)
		np.testing.assert_allclose(supportVector([-1.0, 0.0, 1.0], S), [-1.0, 0.0, 2.0])

		T = sop.CartesianProductArray([X, Y, X])
		self.assertEqual(T.dim(), 4)
		np.testing.assert_allclose(supportVector([1.0, 1.0, 0.0, -1.0], T), [1.0, 2.0, 0.0, -1.0])


class ConvexHullTests(unittest.TestCase):
	def test_larger_support_wins(self):
		X = Singleton([1.0, 0.0])
		Y = Singleton([0.0, 2.0])
		H = sop.ConvexHull(X, Y)
		np.testing.assert_array_equal(supportVector([1.0, 0.0], H), [1.0, 0.0])
		np.testing.assert_array_equal(supportVector([0.0, 1.0], H), [0.0, 2.0])

	def test_ties_prefer_the_first_operand(self):
		H = sop.ConvexHull(Singleton([1.0, 0.0]), Singleton([0.0, 1.0]))
		np.testing.assert_array_equal(supportVector([1.0, 1.0], H), [1.0, 0.0])

	def test_array(self):
		H = sop.ConvexHullArray([Singleton([float(i), float(-i)]) for i in range(5)])
		np.testing.assert_array_equal(supportVector([1.0, 0.0], H), [4.0, -4.0])
		np.testing.assert_array_equal(supportVector([0.0, 1.0], H), [0.0, 0.0])


class IntersectionTests(unittest.TestCase):
	def test_polyhedral_operands_use_the_lp(self):
		S = sop.Intersection(BallInf([0.0, 0.0], 1.0), HalfSpace([1.0, 1.0], 1.0))
		self.assertTrue(S.isPolyhedral())
		self.assertAlmostEqual(supportFunction([1.0, 1.0], S), 1.0, places=8)
		np.testing.assert_allclose(supportVector([-1.0, 0.0], S)[0], -1.0, atol=1e-8)

	def test_half_space_line_search(self):
		S = sop.Intersection(Ball2([0.0, 0.0], 1.0), HalfSpace([1.0, 0.0], 0.5))
		np.testing.assert_allclose(supportVector([1.0, 0.0], S), [0.5, 0.0], atol=1e-5)
		np.testing.assert_allclose(supportVector([1.0, 1.0], S), [0.5, np.sqrt(0.75)], atol=1e-4)
		# The constraint is inactive in this direction.
		np.testing.assert_allclose(supportVector([0.0, 1.0], S), [0.0, 1.0])

	def test_hyperplane_line_search(self):
		S = sop.Intersection(Hyperplane([0.0, 1.0], 0.5), Ball2([0.0, 0.0], 1.0))
		np.testing.assert_allclose(supportVector([1.0, 0.0], S), [np.sqrt(0.75), 0.5], atol=1e-4)

	def test_generic_operands_are_unsupported(self):
		S = sop.Intersection(Ball2([0.0, 0.0], 1.0), Ball1([0.0, 0.0], 1.0))
		with self.assertRaises(UnsupportedOperationError):
			supportVector([1.0, 0.0], S)


class LinearMapTests(unittest.TestCase):
	def test_composition_rule(self):
		M = np.array([[1.0, 2.0], [0.0, -1.0], [3.0, 1.0]])
		X = Ball2([0.0, 1.0], 1.0)
		S = sop.LinearMap(M, X)
		self.assertEqual(S.dim(), 3)
		for d in randomDirections(3, 20, 6):
			np.testing.assert_allclose(supportVector(d, S), M @ supportVector(M.T @ d, X))

	def test_exact_map(self):
		X = BallInf([Fraction(0), Fraction(0)], Fraction(1, 2))
		S = sop.linearMap([[1, 1], [0, 2]], X)
		sv = supportVector([1, 1], S)
		self.assertEqual(list(sv), [Fraction(1), Fraction(1)])
		with self.assertRaises(NumericTypeMismatchError):
			sop.LinearMap(np.array([[0.5, 0.0], [0.0, 1.0]]), X)

	def test_unbounded_operand(self):
		S = sop.LinearMap(np.array([[2.0, 0.0], [0.0, 1.0]]), HalfSpace([1.0, 0.0], 1.0))
		self.assertEqual(supportFunction([0.0, 1.0], S), float('inf'))
		self.assertFalse(S.isBounded())

	def test_dimension_check(self):
		with self.assertRaises(DimensionMismatchError):
			sop.LinearMap(np.eye(3), Ball2([0.0, 0.0], 1.0))


class ExponentialMapTests(unittest.TestCase):
	def test_action_matches_dense_exponential(self):
		M = np.array([[0.0, 0.3], [-0.3, 0.1]])
		X = Zonotope([1.0, 0.0], [[1.0, 0.2], [0.3, 1.0]])
		E = expm(M)
		S = sop.ExponentialMap(M, X)
		D = sop.ExponentialMap(M, X, krylov=False)
		for d in randomDirections(2, 20, 7):
			expected = E @ supportVector(E.T @ d, X)
			np.testing.assert_allclose(supportVector(d, S), expected, atol=1e-10)
			np.testing.assert_allclose(supportVector(d, D), expected, atol=1e-10)

	def test_exact_sets_are_rejected(self):
		with self.assertRaises(NumericTypeMismatchError):
			sop.ExponentialMap(np.eye(2), BallInf([Fraction(0), Fraction(0)], Fraction(1)))


class CompositeSupportingHalfspaceTests(unittest.TestCase):
	# Every sampled element must satisfy <d, x> <= rho(d, S), and rho = <d, sigma>.
	def check(self, S, samples, tol=1e-9):
		rng = np.random.default_rng(11)
		for _ in range(40):
			d = rng.normal(size=S.dim())
			r = supportFunction(d, S)
			self.assertAlmostEqual(r, float(d @ supportVector(d, S)), places=9)
			for x in samples:
				self.assertLessEqual(d @ x, r + tol)

	# Same law in exact arithmetic, without any tolerance.
	def checkExact(self, S, samples):
		rng = np.random.default_rng(12)
		for _ in range(40):
			d = [Fraction(int(v)) for v in rng.integers(-5, 6, size=S.dim())]
			r = supportFunction(d, S)
			self.assertIsInstance(r, Fraction)
			self.assertEqual(r, np.dot(d, supportVector(d, S)))
			for x in samples:
				self.assertLessEqual(np.dot(d, x), r)

	def setUp(self):
		u = np.random.default_rng(13).uniform(-1, 1, size=(150, 2))
		self.disk = [x/max(1.0, np.linalg.norm(x)) for x in u]
		self.square = list(u)

	def test_intersections(self):
		S = sop.Intersection(Ball2([0.0, 0.0], 1.0), HalfSpace([1.0, 1.0], 0.5))
		self.check(S, [x for x in self.disk if x[0] + x[1] <= 0.5], tol=1e-6)

		T = sop.Intersection(BallInf([0.0, 0.0], 1.0), HalfSpace([1.0, 2.0], 1.0))
		self.check(T, [x for x in self.square if x[0] + 2*x[1] <= 1.0], tol=1e-7)

	def test_hull_and_sums(self):
		apex = np.array([3.0, 0.0])
		H = sop.ConvexHull(Ball2([0.0, 0.0], 1.0), Singleton(apex))
		ts = np.linspace(0, 1, len(self.disk))
		self.check(H, [t*x + (1 - t)*apex for t, x in zip(ts, self.disk)])

		A = sop.MinkowskiSumArray([Ball2([0.0, 0.0], 1.0), BallInf([1.0, 0.0], 0.5)])
		self.check(A, [x + np.array([1.0, 0.0]) + 0.5*y for x, y in zip(self.disk, self.square)])

	def test_maps(self):
		M = np.array([[1.0, 2.0], [-0.5, 1.0]])
		G = np.array([[1.0, 0.0, 0.5], [0.0, 1.0, 0.5]])
		Z = Zonotope([0.0, 1.0], G)
		rng = np.random.default_rng(14)
		self.check(sop.LinearMap(M, Z),
				   [M @ (Z.center + G @ rng.uniform(-1, 1, size=3)) for _ in range(150)])

		N = np.array([[0.0, 1.0], [-1.0, -0.2]])
		E = expm(N)
		self.check(sop.ExponentialMap(N, Ball2([1.0, 0.0], 0.5)),
				   [E @ (np.array([1.0, 0.0]) + 0.5*x) for x in self.disk], tol=1e-8)

	def test_exact_composites(self):
		F = Fraction
		B = BallInf([F(0), F(0)], F(1))
		grid = [np.array([F(i, 3), F(j, 3)], dtype=object) for i in range(-3, 4) for j in range(-3, 4)]

		M = [[1, 2], [0, -1]]
		self.checkExact(sop.LinearMap(M, B), [np.dot(np.array(M, dtype=object), x) for x in grid])

		apex = np.array([F(3), F(1, 2)], dtype=object)
		self.checkExact(sop.ConvexHull(B, Singleton(apex)),
						grid + [apex, (grid[0] + apex)/2, (grid[-1] + apex)/2])

		Z = Zonotope([F(1), F(0)], [[F(1), F(1, 2)], [F(0), F(1)]])
		zs = [Z.center + np.dot(Z.generators, np.array([F(s), F(t)], dtype=object))
			  for s in (-1, 0, 1) for t in (-1, F(1, 2), 1)]
		self.checkExact(sop.MinkowskiSum(B, Z), [x + z for x in grid[::5] for z in zs])

		P = sop.CartesianProduct(B, BallInf([F(1)], F(1, 4)))
		self.checkExact(P, [np.concatenate((x, np.array([F(5, 4)], dtype=object))) for x in grid])

	def test_exact_intersections_are_rejected(self):
		F = Fraction
		S = sop.Intersection(BallInf([F(0), F(0)], F(1)), HalfSpace([F(3), F(0)], F(1)))
		with self.assertRaises(NumericTypeMismatchError):
			supportVector([1, 0], S)

		T = sop.Intersection(Singleton([F(0), F(0)]), Hyperplane([F(1), F(0)], F(0)))
		with self.assertRaises(NumericTypeMismatchError):
			supportVector([1, 0], T)


class NeutralAbsorbingTests(unittest.TestCase):
	def test_elements(self):
		self.assertIs(sop.neutral(sop.MinkowskiSum), ZeroSet)
		self.assertIs(sop.absorbing(sop.MinkowskiSum), EmptySet)
		self.assertIs(sop.neutral(sop.ConvexHull), EmptySet)
		self.assertIs(sop.absorbing(sop.Intersection), EmptySet)
		with self.assertRaises(UnsupportedOperationError):
			sop.absorbing(sop.ConvexHull)

	def test_simplifying_constructors(self):
		X = Ball2([0.0, 0.0], 1.0)
		self.assertIs(sop.minkowskiSum(ZeroSet(2), X), X)
		self.assertIsInstance(sop.minkowskiSum(X, EmptySet(2)), EmptySet)
		self.assertIs(sop.convexHull(EmptySet(2), X), X)
		self.assertIsInstance(sop.intersection(EmptySet(2), X), EmptySet)
		self.assertEqual(sop.cartesianProduct(X, EmptySet(1)).dim(), 3)
		self.assertIsInstance(sop.convexHull(X, BallInf([0.0, 0.0], 1.0)), sop.ConvexHull)


if __name__ == "__main__":
	unittest.main()
