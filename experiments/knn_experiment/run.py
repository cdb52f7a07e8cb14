from experiments.harnesses.brute_force_knn import *

folder = Path(__file__).resolve().parent
run(folder=folder)
